"""
The authoritative project tree.

FileStore owns every FileRecord and enforces the tree invariants:

- exactly one root ('/'), a directory with no parent, never deleted or renamed
- paths are unique
- every non-root record hangs off an existing directory
  (parent_path None is accepted as a legacy spelling of '/')
- deleting or renaming a directory cascades to its whole subtree

Persistence is delegated to a StorageBackend. When the backend reports
StorageUnavailable the store swaps in a MemoryBackend once, for good, and
replays the operation there. That swap happens in exactly one place,
`_run`, so callers never see the failure. Should the replacement fail
too, `_run` raises StorageError instead.
"""

import threading
from typing import Callable, Iterable, List, Optional, TypeVar

from loguru import logger

from . import paths
from .backends import MemoryBackend, SQLBackend, StorageBackend
from .errors import (
    Conflict, InvalidInput, MissingParent, StorageError, StorageUnavailable,
)
from .records import FileRecord
from .seed import DEFAULT_PROJECT

T = TypeVar('T')

DEFAULT_PROJECT_NAME = 'my-web-project'


class FileStore:
    """Thread-safe tree of files and directories over a swappable backend."""

    def __init__(self, backend: Optional[StorageBackend] = None,
                 project_name: str = DEFAULT_PROJECT_NAME,
                 seed: bool = False,
                 fallback_factory: Callable[[], StorageBackend] = MemoryBackend):
        self.project_name = project_name
        self.seed = seed
        self._fallback_factory = fallback_factory
        self._backend = backend if backend is not None else MemoryBackend()
        self._degraded = False
        # One lock for reads and writes: a cascade is never half-visible.
        self._lock = threading.RLock()

        with self._lock:
            self._run(self._initialize)

    # Backend management

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def backend_name(self) -> str:
        return self._backend.name

    @property
    def degraded(self) -> bool:
        """True once the store has fallen back to memory storage."""
        return self._degraded

    def _run(self, operation: Callable[[StorageBackend], T]) -> T:
        """Run an operation against the backend, falling back on outage."""
        try:
            return operation(self._backend)
        except StorageUnavailable as exc:
            if self._degraded:
                raise StorageError(f"storage failed: {exc.message}") from exc
            cause = exc
        try:
            self._fall_back(cause)
            return operation(self._backend)
        except StorageUnavailable as exc:
            raise StorageError(f"storage failed: {exc.message}") from exc

    def _fall_back(self, cause: Exception) -> None:
        logger.warning(
            f"{self._backend.name} storage unavailable ({cause}); "
            f"switching to in-memory storage for the rest of this process"
        )
        failed = self._backend
        fallback = self._fallback_factory()
        self._initialize(fallback)
        self._backend = fallback
        self._degraded = True
        try:
            failed.close()
        except Exception as exc:
            logger.debug(f"error closing failed backend: {exc}")

    def _initialize(self, backend: StorageBackend) -> None:
        """Make sure the root exists, seeding the default project if empty."""
        if backend.get(paths.ROOT) is not None:
            return
        empty = backend.count() == 0
        backend.insert(FileRecord(path=paths.ROOT, name=self.project_name,
                                  is_directory=True, parent_path=None))
        if empty and self.seed:
            for entry in DEFAULT_PROJECT:
                backend.insert(FileRecord.new(
                    entry['path'],
                    is_directory=entry.get('is_directory', False),
                    content=entry.get('content'),
                    parent_path=paths.parent_of(entry['path']),
                ))
            logger.info(f"Seeded default project '{self.project_name}'")

    def close(self) -> None:
        with self._lock:
            self._backend.close()

    # Queries

    def list(self) -> List[FileRecord]:
        """All records, directories first, then by name."""
        with self._lock:
            return sorted(self._run(lambda b: b.all()), key=FileRecord.sort_key)

    def get(self, path: str) -> Optional[FileRecord]:
        with self._lock:
            return self._run(lambda b: b.get(path))

    def exists(self, path: str) -> bool:
        return self.get(path) is not None

    def is_dir(self, path: str) -> bool:
        record = self.get(path)
        return record is not None and record.is_directory

    def children(self, path: str) -> List[FileRecord]:
        """Direct children of a directory, in list() order."""
        def matches(record: FileRecord) -> bool:
            if record.is_root:
                return False
            if path == paths.ROOT:
                return record.parent_path in (None, paths.ROOT)
            return record.parent_path == path

        return [r for r in self.list() if matches(r)]

    def search(self, query: str) -> List[FileRecord]:
        """Case-insensitive match on name or content, in creation order."""
        with self._lock:
            return self._run(lambda b: b.search(query))

    # Mutations

    def create(self, path: str, name: Optional[str] = None,
               content: Optional[str] = None, is_directory: bool = False,
               parent_path: Optional[str] = None) -> FileRecord:
        """Add a new file or directory.

        Raises:
            InvalidInput: path is not absolute, or name/parent_path
                disagree with path.
            MissingParent: the containing directory does not exist.
            Conflict: something already lives at path.
        """
        if not path.startswith(paths.ROOT) or path == paths.ROOT:
            raise InvalidInput(f"invalid path: {path!r}", path)
        derived_parent = paths.parent_of(path)
        if name is not None and name != paths.basename(path):
            raise InvalidInput(
                f"name {name!r} does not match path {path!r}", path)
        if parent_path is None:
            # Root-level records keep the legacy None parent.
            parent_path = None if derived_parent == paths.ROOT else derived_parent
        elif parent_path != derived_parent:
            raise InvalidInput(
                f"parentPath {parent_path!r} does not match path {path!r}", path)

        record = FileRecord.new(path, is_directory=is_directory,
                                content=content, parent_path=parent_path)

        def operation(backend: StorageBackend) -> FileRecord:
            self._require_free(backend, path)
            self._require_parent(backend, path)
            return backend.insert(record)

        with self._lock:
            created = self._run(operation)
        logger.debug(f"created {'directory' if is_directory else 'file'} {path}")
        return created

    def update(self, path: str, name: Optional[str] = None,
               content: Optional[str] = None) -> Optional[FileRecord]:
        """Change name and/or content in place. None if path is absent."""
        def operation(backend: StorageBackend) -> Optional[FileRecord]:
            record = backend.get(path)
            if record is None:
                return None
            changes = {}
            if name is not None:
                changes['name'] = name
            if content is not None:
                if record.is_directory:
                    raise InvalidInput(f"{path} is a directory", path)
                changes['content'] = content
            updated = record.touched(**changes)
            backend.replace([updated])
            return updated

        with self._lock:
            return self._run(operation)

    def delete(self, path: str) -> bool:
        """Remove a record and, for directories, everything beneath it."""
        if path == paths.ROOT:
            raise InvalidInput("cannot delete the root directory", path)

        def operation(backend: StorageBackend) -> bool:
            record = backend.get(path)
            if record is None:
                return False
            ids = []
            if record.is_directory:
                ids.extend(r.id for r in backend.subtree(path))
            ids.append(record.id)
            backend.remove(ids)
            return True

        with self._lock:
            deleted = self._run(operation)
        if deleted:
            logger.debug(f"deleted {path}")
        return deleted

    def rename(self, old_path: str, new_path: str) -> Optional[FileRecord]:
        """Move a record to new_path, carrying its subtree along.

        Returns None if old_path is absent.

        Raises:
            InvalidInput: renaming the root, a relative target, or moving a
                directory inside itself.
            MissingParent: new_path's directory does not exist.
            Conflict: new_path is taken.
        """
        if old_path == paths.ROOT:
            raise InvalidInput("cannot rename the root directory", old_path)
        if not new_path.startswith(paths.ROOT) or new_path == paths.ROOT:
            raise InvalidInput(f"invalid path: {new_path!r}", new_path)

        def operation(backend: StorageBackend) -> Optional[FileRecord]:
            record = backend.get(old_path)
            if record is None:
                return None
            if new_path == old_path:
                return record
            if paths.is_within(new_path, old_path):
                raise InvalidInput(
                    f"cannot move {old_path} into itself ({new_path})", new_path)
            self._require_free(backend, new_path)
            self._require_parent(backend, new_path)

            moved = [record.touched(
                path=new_path,
                name=paths.basename(new_path),
                parent_path=self._parent_for(new_path, record.parent_path),
            )]
            if record.is_directory:
                moved.extend(self._rebased(backend.subtree(old_path),
                                           old_path, new_path))
            backend.replace(moved)
            return moved[0]

        with self._lock:
            renamed = self._run(operation)
        if renamed is not None:
            logger.debug(f"renamed {old_path} -> {new_path}")
        return renamed

    # Helpers

    @staticmethod
    def _rebased(records: Iterable[FileRecord], old: str,
                 new: str) -> List[FileRecord]:
        return [r.touched(
            path=paths.rebase(r.path, old, new),
            parent_path=(paths.rebase(r.parent_path, old, new)
                         if r.parent_path is not None else None),
        ) for r in records]

    @staticmethod
    def _parent_for(path: str, previous: Optional[str]) -> Optional[str]:
        parent = paths.parent_of(path)
        # Keep the legacy None spelling when the record stays at the top level.
        if parent == paths.ROOT and previous is None:
            return None
        return parent

    @staticmethod
    def _require_free(backend: StorageBackend, path: str) -> None:
        if backend.get(path) is not None:
            raise Conflict(f"{path} already exists", path)

    @staticmethod
    def _require_parent(backend: StorageBackend, path: str) -> None:
        parent = backend.get(paths.parent_of(path))
        if parent is None or not parent.is_directory:
            raise MissingParent(
                f"parent directory of {path} does not exist", path)


def open_store(database_url: Optional[str] = None,
               project_name: str = DEFAULT_PROJECT_NAME,
               seed: bool = True) -> FileStore:
    """Build a FileStore, probing the database once.

    An unreachable database is logged and replaced by memory storage.
    """
    backend: StorageBackend
    if database_url:
        try:
            backend = SQLBackend(database_url)
            backend.probe()
            logger.info(f"Using SQL storage at {backend.engine.url!r}")
        except StorageUnavailable as exc:
            logger.warning(f"Database unavailable ({exc}); using in-memory storage")
            backend = MemoryBackend()
    else:
        logger.info("No database configured; using in-memory storage")
        backend = MemoryBackend()
    return FileStore(backend, project_name=project_name, seed=seed)
