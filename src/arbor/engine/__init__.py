from .invoker import InvocationEngine
from .progress import ProgressState, ProgressTracker

__all__ = ["InvocationEngine", "ProgressState", "ProgressTracker"]
