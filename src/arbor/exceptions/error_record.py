import traceback
from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """What went wrong, as far as the caller needs to know."""

    IO = "io"
    VALIDATION = "validation"
    SECURITY = "security"
    HANDLER = "handler"


class ErrorCategory(str, Enum):
    """Host-facing category reported alongside an error."""

    NOT_SPECIFIED = "NotSpecified"
    READ_ERROR = "ReadError"
    WRITE_ERROR = "WriteError"
    INVALID_DATA = "InvalidData"
    PERMISSION_DENIED = "PermissionDenied"
    INVALID_OPERATION = "InvalidOperation"
    NOT_IMPLEMENTED = "NotImplemented"


_CATEGORY_BY_KIND = {
    ErrorKind.IO: ErrorCategory.READ_ERROR,
    ErrorKind.VALIDATION: ErrorCategory.INVALID_DATA,
    ErrorKind.SECURITY: ErrorCategory.PERMISSION_DENIED,
    ErrorKind.HANDLER: ErrorCategory.NOT_SPECIFIED,
}


@dataclass(frozen=True)
class ErrorRecord:
    """
    A single fault produced while calling a handler or using a content stream.

    Attributes:
        kind: Broad classification of the fault
        message: Human readable message
        node_name: Name of the node the fault originated from
        error_id: Stable identifier for the fault (e.g. "SetContent.NotSupported")
        category: Category reported to the host
        exception: Exception that caused the fault, if any
        stack_trace: Formatted traceback used as a debug hint, if any
    """

    kind: ErrorKind
    message: str
    node_name: str
    error_id: str = "HandlerError"
    category: ErrorCategory = ErrorCategory.NOT_SPECIFIED
    exception: BaseException | None = None
    stack_trace: str | None = None

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        *,
        node_name: str,
        error_id: str | None = None,
        category: ErrorCategory | None = None,
    ) -> "ErrorRecord":
        """Classify an exception raised by a handler or a content buffer."""

        from .handler_exception import HandlerException

        if isinstance(exception, HandlerException):
            kind = exception.kind
            error_id = error_id or exception.error_id
        elif isinstance(exception, PermissionError):
            kind = ErrorKind.SECURITY
        elif isinstance(exception, OSError):
            kind = ErrorKind.IO
        elif isinstance(exception, (ValueError, TypeError, KeyError)):
            kind = ErrorKind.VALIDATION
        else:
            kind = ErrorKind.HANDLER

        stack_trace = None
        if exception.__traceback__ is not None:
            stack_trace = "".join(traceback.format_tb(exception.__traceback__))

        return cls(
            kind=kind,
            message=str(exception) or exception.__class__.__name__,
            node_name=node_name,
            error_id=error_id or exception.__class__.__name__,
            category=category or _CATEGORY_BY_KIND[kind],
            exception=exception,
            stack_trace=stack_trace or None,
        )

    def __str__(self) -> str:
        return f"{self.error_id} ({self.kind.value}) on '{self.node_name}': {self.message}"
