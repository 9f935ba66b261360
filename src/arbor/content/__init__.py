from .stream import AccessMode, ContentStream

__all__ = ["AccessMode", "ContentStream"]
