"""Base exception shared by every domain error raised by the application."""


class DraftReleaseError(Exception):
    """Base class for errors reported per release stream.

    Subclasses set ``kind`` to the short error kind shown to users next to the
    failing release stream.
    """

    kind: str = "DraftReleaseError"

    def __init__(self, message: str) -> None:
        """Initializes the exception with a human-readable message."""
        super().__init__(message)
        self.message = message
