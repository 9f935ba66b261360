from .arbor_exception import ArborException
from .error_record import ErrorKind, ErrorRecord


class HandlerException(ArborException):
    """Raised by a handler to report a fault of a specific kind."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.HANDLER,
        error_id: str = "HandlerError",
    ) -> None:
        super().__init__(message)

        self.kind = kind
        self.error_id = error_id


class SetContentNotSupportedException(HandlerException):
    """Raised when a leaf handler does not accept content."""

    def __init__(self, node_name: str) -> None:
        super().__init__(
            f"Setting content is not supported by '{node_name}'.",
            kind=ErrorKind.HANDLER,
            error_id="SetContent.NotSupported",
        )

        self.node_name = node_name


class InvocationFailedException(ArborException):
    """Raised when a handler call whose failure must reach the caller reported errors."""

    def __init__(self, *, operation: str, node_name: str, errors: list[ErrorRecord]) -> None:
        if len(errors) == 1:
            detail = errors[0].message
        else:
            detail = f"{len(errors)} errors, first: {errors[0].message}"

        super().__init__(f"{operation} failed for '{node_name}': {detail}")

        self.operation = operation
        self.node_name = node_name
        self.errors = errors

    @property
    def error_id(self) -> str:
        return self.errors[0].error_id
