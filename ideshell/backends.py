"""
Storage backends for the file store.

A backend is a dumb, durable bag of FileRecords. It knows nothing about
tree invariants; FileStore computes every change and hands the backend
finished records. Each backend method is atomic on its own, so a cascade
written with one `replace` or `remove` call lands all-or-nothing.

Backends signal an unreachable store by raising StorageUnavailable and a
duplicate path by raising Conflict. Nothing else is translated.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import timezone
from typing import Dict, Iterator, List, Optional, Sequence

import sqlalchemy as sql
import sqlalchemy.orm as orm
from sqlalchemy.exc import (
    ArgumentError, IntegrityError, InterfaceError, OperationalError,
)
from sqlalchemy.pool import StaticPool
from loguru import logger

from . import paths
from .errors import Conflict, StorageUnavailable
from .records import FileRecord


def matches(record: FileRecord, query: str) -> bool:
    """Case-insensitive substring test on a record's name or content."""
    needle = query.casefold()
    if needle in record.name.casefold():
        return True
    return record.content is not None and needle in record.content.casefold()


class StorageBackend(ABC):
    """Interface every storage backend implements."""

    name = 'abstract'

    def probe(self) -> None:
        """Raise StorageUnavailable if the store cannot be reached."""

    def close(self) -> None:
        """Release any held resources."""

    @abstractmethod
    def all(self) -> List[FileRecord]:
        """Every record, in creation order."""

    @abstractmethod
    def get(self, path: str) -> Optional[FileRecord]:
        """Exact path lookup."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""

    @abstractmethod
    def insert(self, record: FileRecord) -> FileRecord:
        """Store a new record; Conflict if its path is taken."""

    @abstractmethod
    def replace(self, records: Sequence[FileRecord]) -> None:
        """Overwrite existing records (matched by id) in one step."""

    @abstractmethod
    def remove(self, ids: Sequence[str]) -> int:
        """Delete records by id in one step; return how many went."""

    @abstractmethod
    def subtree(self, path: str) -> List[FileRecord]:
        """Records whose parent_path is `path` or whose path is under it."""

    @abstractmethod
    def search(self, query: str) -> List[FileRecord]:
        """Case-insensitive substring match on name or content."""


class MemoryBackend(StorageBackend):
    """Process-local storage; also the fallback when SQL goes away."""

    name = 'memory'

    def __init__(self):
        # id -> record, kept in insertion order
        self.records: Dict[str, FileRecord] = {}
        # path -> id
        self.paths: Dict[str, str] = {}

    def all(self) -> List[FileRecord]:
        return list(self.records.values())

    def get(self, path: str) -> Optional[FileRecord]:
        record_id = self.paths.get(path)
        if record_id is None:
            return None
        return self.records[record_id]

    def count(self) -> int:
        return len(self.records)

    def insert(self, record: FileRecord) -> FileRecord:
        if record.path in self.paths:
            raise Conflict(f"{record.path} already exists", record.path)
        self.records[record.id] = record
        self.paths[record.path] = record.id
        return record

    def replace(self, records: Sequence[FileRecord]) -> None:
        old_paths = [self.records[r.id].path for r in records]
        for path in old_paths:
            del self.paths[path]
        for record in records:
            self.records[record.id] = record
            self.paths[record.path] = record.id

    def remove(self, ids: Sequence[str]) -> int:
        removed = 0
        for record_id in ids:
            record = self.records.pop(record_id, None)
            if record is not None:
                del self.paths[record.path]
                removed += 1
        return removed

    def subtree(self, path: str) -> List[FileRecord]:
        return [r for r in self.records.values()
                if r.parent_path == path or paths.is_within(r.path, path)]

    def search(self, query: str) -> List[FileRecord]:
        return [r for r in self.records.values() if matches(r, query)]


class FileRow(orm.declarative_base()):
    """One FileRecord as a row of the `files` table."""
    __tablename__ = 'files'

    # seq gives a stable creation order; id is the public identifier.
    seq = sql.Column(sql.Integer, primary_key=True, autoincrement=True)
    id = sql.Column(sql.String(32), nullable=False, unique=True)
    name = sql.Column(sql.Text, nullable=False)
    path = sql.Column(sql.Text, nullable=False, unique=True)
    content = sql.Column(sql.Text, nullable=True)
    is_directory = sql.Column(sql.Boolean, nullable=False, default=False)
    parent_path = sql.Column(sql.Text, nullable=True, index=True)
    created_at = sql.Column(sql.DateTime(timezone=True), nullable=False)
    updated_at = sql.Column(sql.DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<FileRow {self.path} ({self.id})>"

    def to_record(self) -> FileRecord:
        return FileRecord(
            id=self.id,
            name=self.name,
            path=self.path,
            content=self.content,
            is_directory=self.is_directory,
            parent_path=self.parent_path,
            created_at=_aware(self.created_at),
            updated_at=_aware(self.updated_at),
        )

    def assign(self, record: FileRecord) -> None:
        self.id = record.id
        self.name = record.name
        self.path = record.path
        self.content = record.content
        self.is_directory = record.is_directory
        self.parent_path = record.parent_path
        self.created_at = record.created_at
        self.updated_at = record.updated_at


def _aware(value):
    # SQLite hands timestamps back without a zone.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLBackend(StorageBackend):
    """Relational storage through SQLAlchemy.

    Every public method runs inside one transaction. Connection-level
    driver failures surface as StorageUnavailable, unique-key violations
    as Conflict.
    """

    name = 'sql'

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {'echo': echo}
        if url.startswith('sqlite'):
            kwargs['connect_args'] = {'check_same_thread': False}
            if url in ('sqlite://', 'sqlite:///:memory:'):
                kwargs['poolclass'] = StaticPool
        try:
            self.engine = sql.create_engine(url, **kwargs)
        except (ImportError, ArgumentError) as exc:
            raise StorageUnavailable(f"cannot use database {url!r}: {exc}") from exc
        self.sessions = orm.sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def _session(self) -> Iterator[orm.Session]:
        try:
            with self.sessions.begin() as session:
                yield session
        except IntegrityError as exc:
            raise Conflict(f"duplicate path: {exc.orig}") from exc
        except (OperationalError, InterfaceError) as exc:
            raise StorageUnavailable(str(exc.orig or exc)) from exc

    def probe(self) -> None:
        """Check connectivity and make sure the table exists."""
        with self._session() as session:
            session.execute(sql.text('SELECT 1'))
        try:
            FileRow.metadata.create_all(self.engine)
        except (OperationalError, InterfaceError) as exc:
            raise StorageUnavailable(str(exc.orig or exc)) from exc
        logger.debug(f"SQL backend ready at {self.engine.url!r}")

    def close(self) -> None:
        self.engine.dispose()

    def all(self) -> List[FileRecord]:
        with self._session() as session:
            rows = session.scalars(sql.select(FileRow).order_by(FileRow.seq))
            return [row.to_record() for row in rows]

    def get(self, path: str) -> Optional[FileRecord]:
        with self._session() as session:
            row = session.scalars(
                sql.select(FileRow).where(FileRow.path == path).limit(1)
            ).first()
            return row.to_record() if row is not None else None

    def count(self) -> int:
        with self._session() as session:
            return session.scalar(sql.select(sql.func.count()).select_from(FileRow))

    def insert(self, record: FileRecord) -> FileRecord:
        with self._session() as session:
            row = FileRow()
            row.assign(record)
            session.add(row)
        return record

    def replace(self, records: Sequence[FileRecord]) -> None:
        by_id = {r.id: r for r in records}
        with self._session() as session:
            rows = session.scalars(
                sql.select(FileRow).where(FileRow.id.in_(list(by_id)))
            )
            for row in rows:
                row.assign(by_id[row.id])

    def remove(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        with self._session() as session:
            result = session.execute(
                sql.delete(FileRow).where(FileRow.id.in_(list(ids)))
            )
            return result.rowcount

    def subtree(self, path: str) -> List[FileRecord]:
        prefix = paths.ROOT if path == paths.ROOT else path + paths.SEP
        with self._session() as session:
            rows = session.scalars(
                sql.select(FileRow)
                .where(sql.or_(
                    FileRow.parent_path == path,
                    sql.and_(FileRow.path.startswith(prefix, autoescape=True),
                             FileRow.path != path),
                ))
                .order_by(FileRow.seq)
            )
            return [row.to_record() for row in rows]

    def search(self, query: str) -> List[FileRecord]:
        # Database lower() folds ASCII only, so the match itself runs here.
        with self._session() as session:
            rows = session.scalars(sql.select(FileRow).order_by(FileRow.seq))
            records = [row.to_record() for row in rows]
        return [r for r in records if matches(r, query)]
