from .base import (
    CallState,
    DirectoryHandler,
    Handler,
    LeafHandler,
    Operation,
)
from .gateway import HandlerChannel, HandlerGateway

__all__ = [
    "CallState",
    "DirectoryHandler",
    "Handler",
    "LeafHandler",
    "Operation",
    "HandlerChannel",
    "HandlerGateway",
]
