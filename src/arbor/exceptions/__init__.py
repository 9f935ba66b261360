from .arbor_exception import ArborException, ItemNotFoundException
from .error_record import (
    ErrorCategory,
    ErrorKind,
    ErrorRecord,
)
from .handler_exception import (
    HandlerException,
    InvocationFailedException,
    SetContentNotSupportedException,
)
from .content_stream_exception import ContentStreamException
from .contract_exception import (
    ContractException,
    NodeNameException,
    NotContainerNodeException,
)

__all__ = [
    "ArborException",
    "ItemNotFoundException",
    "ErrorCategory",
    "ErrorKind",
    "ErrorRecord",
    "HandlerException",
    "InvocationFailedException",
    "SetContentNotSupportedException",
    "ContentStreamException",
    "ContractException",
    "NodeNameException",
    "NotContainerNodeException",
]
