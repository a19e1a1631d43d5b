"""
ideshell - the project tree and virtual shell behind a browser code editor

This package provides a path-addressed store of files and directories with
recursive rename/delete, swappable SQL or in-memory persistence, a small
shell interpreter that runs against the store, and the HTTP API the editor
talks to.
"""

__version__ = "0.1.0"

from .errors import (
    IdeShellError,
    NotFound,
    Conflict,
    InvalidInput,
    MissingParent,
    StorageUnavailable,
    StorageError,
)

from .records import FileRecord

from .backends import (
    StorageBackend,
    MemoryBackend,
    SQLBackend,
)

from .filestore import (
    FileStore,
    open_store,
)

from .command_parser import (
    Command,
    CommandParser,
)

from .interpreter import (
    ShellInterpreter,
    CommandResult,
)

from .sessions import SessionRegistry

from .config import AppConfig

__all__ = [
    # Errors
    "IdeShellError",
    "NotFound",
    "Conflict",
    "InvalidInput",
    "MissingParent",
    "StorageUnavailable",
    "StorageError",

    # Store
    "FileRecord",
    "StorageBackend",
    "MemoryBackend",
    "SQLBackend",
    "FileStore",
    "open_store",

    # Shell
    "Command",
    "CommandParser",
    "ShellInterpreter",
    "CommandResult",
    "SessionRegistry",

    # Configuration
    "AppConfig",

    # Version info
    "__version__",
]
