"""Per-terminal working directories."""

import threading
import uuid
from typing import Dict

from . import paths


class SessionRegistry:
    """
    Maps opaque session ids to a current working directory.

    Sessions only own their cwd; the tree itself is shared through the
    FileStore. Unknown ids are materialized at '/' on first use.
    """

    def __init__(self):
        self._cwds: Dict[str, str] = {}
        self._lock = threading.Lock()

    def create(self) -> str:
        """Open a new session at the root and return its id."""
        session_id = str(uuid.uuid4())
        with self._lock:
            self._cwds[session_id] = paths.ROOT
        return session_id

    def get(self, session_id: str) -> str:
        with self._lock:
            return self._cwds.setdefault(session_id, paths.ROOT)

    def set_cwd(self, session_id: str, cwd: str) -> None:
        with self._lock:
            self._cwds[session_id] = cwd

    def close(self, session_id: str) -> bool:
        """Forget a session. False if it was never opened."""
        with self._lock:
            return self._cwds.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._cwds

    def __len__(self) -> int:
        with self._lock:
            return len(self._cwds)
