from .arbor_exception import ArborException


class ContractException(ArborException):
    """Raised when a handler result or node reference has an unexpected shape."""

    def __init__(self, message: str, *, error_id: str = "ContractViolation") -> None:
        super().__init__(message)

        self.error_id = error_id


class NodeNameException(ContractException):
    """Raised when a handler is created without a usable name."""

    def __init__(self) -> None:
        super().__init__(
            "Node name must be a non-empty string.",
            error_id="NodeNameIsNullOrEmpty",
        )


class NotContainerNodeException(ContractException):
    """Raised when a directory operation is requested on a leaf."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"'{path}' is not a container node.",
            error_id="NotContainerNode",
        )

        self.path = path
