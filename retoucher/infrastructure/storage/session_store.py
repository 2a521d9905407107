from __future__ import annotations

import logging
import time
from typing import Callable

from retoucher.domain.entities.editor_session import DEFAULT_MAX_IMAGE_DIMENSION, EditorSession
from retoucher.domain.errors import SessionNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 3600.0
DEFAULT_MAX_SESSIONS = 100


class SessionStore:
    """In-memory registry of editor sessions. Nothing survives a restart.

    Sessions idle for longer than ``ttl_seconds`` are dropped, and once
    ``max_sessions`` are held the least recently used idle one is evicted to
    make room. A session with a request in flight is never evicted.
    """

    def __init__(
        self,
        max_image_dimension: int = DEFAULT_MAX_IMAGE_DIMENSION,
        *,
        ttl_seconds: float = DEFAULT_SESSION_TTL,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_image_dimension = max_image_dimension
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: dict[str, EditorSession] = {}
        self._last_used: dict[str, float] = {}

    def create(self) -> EditorSession:
        self.prune()
        if len(self._sessions) >= self.max_sessions:
            self._evict_least_recent()
        session = EditorSession(max_image_dimension=self.max_image_dimension)
        self._sessions[session.id] = session
        self._last_used[session.id] = self._clock()
        logger.info("Created editor session %s", session.id)
        return session

    def get(self, session_id: str) -> EditorSession:
        self.prune()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._last_used[session_id] = self._clock()
        return session

    def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        self._last_used.pop(session_id, None)
        if removed:
            logger.info("Deleted editor session %s", session_id)
        return removed

    def prune(self) -> int:
        """Drop idle sessions past the TTL. Returns how many were dropped."""
        cutoff = self._clock() - self.ttl_seconds
        expired = [
            sid
            for sid, used in self._last_used.items()
            if used < cutoff and not self._sessions[sid].busy
        ]
        for sid in expired:
            self._sessions.pop(sid, None)
            self._last_used.pop(sid, None)
        if expired:
            logger.info("Expired %d idle editor session(s)", len(expired))
        return len(expired)

    def _evict_least_recent(self) -> None:
        idle = [sid for sid in self._last_used if not self._sessions[sid].busy]
        if not idle:
            return
        oldest = min(idle, key=self._last_used.__getitem__)
        logger.warning("Session limit %s reached, evicting %s", self.max_sessions, oldest)
        self.delete(oldest)

    def __len__(self) -> int:
        return len(self._sessions)
