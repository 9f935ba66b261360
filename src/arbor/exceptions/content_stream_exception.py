from .arbor_exception import ArborException


class ContentStreamException(ArborException):
    """Raised when a content stream is used in a way its mode does not allow."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(f"{message} ({path})")

        self.path = path
