"""In-memory registry of converter sessions."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from common.logging import get_logger

from ..core import EnergyController

DEFAULT_TTL_MINUTES = 30
DEFAULT_MAX_SESSIONS = 1000

logger = get_logger("energy_converter.sessions")


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or has expired."""


@dataclass(slots=True)
class SessionData:
    """A controller plus the bookkeeping needed to expire it."""

    controller: EnergyController
    session_id: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_accessed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # Controllers process one event at a time.
    lock: threading.Lock = field(default_factory=threading.Lock)

    def touch(self) -> None:
        self.last_accessed = datetime.now(timezone.utc)


class SessionStore:
    """Thread-safe in-memory session registry with TTL purging."""

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(minutes=DEFAULT_TTL_MINUTES),
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        self._items: dict[str, SessionData] = {}
        self._lock = threading.Lock()
        self.ttl = ttl
        self.max_sessions = max_sessions

    def configure(self, settings: Mapping[str, Any] | None) -> None:
        """Apply ``session_ttl_minutes``/``max_sessions`` from plugin settings."""

        settings = settings or {}
        try:
            ttl_minutes = float(settings.get("session_ttl_minutes", DEFAULT_TTL_MINUTES))
        except (TypeError, ValueError):
            ttl_minutes = DEFAULT_TTL_MINUTES
        try:
            max_sessions = int(settings.get("max_sessions", DEFAULT_MAX_SESSIONS))
        except (TypeError, ValueError):
            max_sessions = DEFAULT_MAX_SESSIONS
        with self._lock:
            self.ttl = timedelta(minutes=max(ttl_minutes, 1))
            self.max_sessions = max(max_sessions, 1)

    def _purge_locked(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            session_id
            for session_id, session in self._items.items()
            if now - session.last_accessed > self.ttl
        ]
        for session_id in expired:
            self._items.pop(session_id, None)
        if expired:
            logger.info("expired %d converter session(s)", len(expired))

    def create(self, controller: EnergyController) -> SessionData:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._purge_locked()
            if len(self._items) >= self.max_sessions:
                oldest = min(self._items.values(), key=lambda item: item.last_accessed)
                self._items.pop(oldest.session_id, None)
                logger.info("evicted converter session %s", oldest.session_id)
            data = SessionData(controller=controller, session_id=session_id)
            self._items[session_id] = data
        logger.info("created converter session %s", session_id)
        return data

    def get(self, session_id: str) -> SessionData:
        with self._lock:
            self._purge_locked()
            try:
                data = self._items[session_id]
            except KeyError as exc:
                raise SessionNotFoundError("Session expired or not found") from exc
            data.touch()
            return data

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._items.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


_SESSION_STORE = SessionStore()


def get_store() -> SessionStore:
    return _SESSION_STORE


__all__ = ["SessionData", "SessionNotFoundError", "SessionStore", "get_store"]
