# khscrm/sessions.py
"""
Server-side session storage.

Handlers depend on :class:`SessionStore` only, so the in-memory store used in
a single process can be swapped for an external one (Redis, a table) without
touching route code.
"""
from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from fastapi import Request

from .security import new_session_id


@dataclass(frozen=True)
class UserContext:
    id: str
    email: str
    name: str
    role: str

    @classmethod
    def from_user(cls, user) -> "UserContext":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class SessionStore(ABC):
    @abstractmethod
    def get(self, session_id: str) -> UserContext | None:
        """Return the user bound to a live session, or None."""

    @abstractmethod
    def create(self, user: UserContext) -> str:
        """Open a session for the user and return its id."""

    @abstractmethod
    def destroy(self, session_id: str) -> None:
        """Forget a session. Unknown ids are ignored."""


class InMemorySessionStore(SessionStore):
    """Process-local sessions with a fixed lifetime counted from creation."""

    def __init__(self, ttl_seconds: float, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, tuple[UserContext, float]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> UserContext | None:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            user, expires_at = entry
            if self._clock() >= expires_at:
                del self._sessions[session_id]
                return None
            return user

    def create(self, user: UserContext) -> str:
        session_id = new_session_id()
        with self._lock:
            self._purge_expired()
            self._sessions[session_id] = (user, self._clock() + self.ttl_seconds)
        return session_id

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._sessions)

    def _purge_expired(self) -> None:
        now = self._clock()
        for sid in [sid for sid, (_, exp) in self._sessions.items() if now >= exp]:
            del self._sessions[sid]


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store
