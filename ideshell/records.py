"""
The FileRecord value type.

Records are immutable; every mutation produces a new record via
`dataclasses.replace`, so a record handed to a caller is a stable snapshot
no matter what the store does afterwards.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from . import paths


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileRecord:
    """One file or directory in the project tree."""
    path: str
    name: str
    is_directory: bool = False
    content: Optional[str] = None
    parent_path: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, path: str, is_directory: bool = False,
            content: Optional[str] = None,
            parent_path: Optional[str] = None) -> 'FileRecord':
        """Build a fresh record; files default to empty content, dirs to none."""
        if is_directory:
            content = None
        elif content is None:
            content = ''
        now = utcnow()
        return cls(path=path, name=paths.basename(path),
                   is_directory=is_directory, content=content,
                   parent_path=parent_path, created_at=now, updated_at=now)

    @property
    def is_root(self) -> bool:
        return self.path == paths.ROOT

    def touched(self, **changes) -> 'FileRecord':
        """Return a copy with `changes` applied and updated_at bumped."""
        return replace(self, updated_at=utcnow(), **changes)

    def sort_key(self) -> tuple:
        # Directories first, then a case-insensitive name order.
        return (not self.is_directory, self.name.casefold(), self.name)

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys the editor client expects."""
        return {
            'id': self.id,
            'name': self.name,
            'path': self.path,
            'content': self.content,
            'isDirectory': self.is_directory,
            'parentPath': self.parent_path,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }
