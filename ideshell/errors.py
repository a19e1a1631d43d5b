"""Error types raised by the file store and surfaced by the HTTP layer."""


class IdeShellError(Exception):
    """Base class for all ideshell errors."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.message = message
        self.path = path


class NotFound(IdeShellError):
    """No record exists at the requested path."""


class Conflict(IdeShellError):
    """A record already exists at the target path."""


class InvalidInput(IdeShellError):
    """The request violates the shape or invariants of the tree."""


class MissingParent(InvalidInput):
    """The parent directory of a new or moved record does not exist."""


class StorageUnavailable(IdeShellError):
    """The backing store cannot be reached.

    Only FileStore catches this; it triggers the switch to memory storage.
    """


class StorageError(IdeShellError):
    """Storage failed after the switch to memory storage."""
