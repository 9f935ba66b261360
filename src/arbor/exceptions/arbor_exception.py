class ArborException(Exception):
    """Base class for all Arbor exceptions."""

    pass


class ItemNotFoundException(ArborException):
    """Raised when a path does not resolve to a node."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot find path '{path}' because it does not exist.")

        self.path = path
