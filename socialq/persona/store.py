"""
Session storage for persona extraction.

SessionStore is the seam request handlers and the sweeper share. The in-memory
implementation keeps one lock per session id: every read-modify-write of a
session, and every sweep deletion, runs while holding that session's lock.
Lock entries exist only while some caller holds or waits on them.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from typing import Protocol

from socialq.persona.models import PersonaState


class SessionStore(Protocol):
    """Storage interface for persona sessions."""

    def get(self, session_id: str) -> PersonaState | None: ...

    def put(self, state: PersonaState) -> None: ...

    def put_if_absent(self, state: PersonaState) -> bool: ...

    def delete(self, session_id: str) -> bool: ...

    def sweep(self, predicate: Callable[[PersonaState], bool]) -> list[str]: ...

    def lock(self, session_id: str) -> AbstractContextManager[None]: ...

    def __contains__(self, session_id: object) -> bool: ...

    def __len__(self) -> int: ...


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class InMemorySessionStore:
    """Process-local session store. Contents are lost on restart."""

    def __init__(self) -> None:
        self._sessions: dict[str, PersonaState] = {}
        self._locks: dict[str, _LockEntry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """Hold the per-session lock. Not re-entrant."""
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = _LockEntry()
                self._locks[session_id] = entry
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[session_id]

    def get(self, session_id: str) -> PersonaState | None:
        with self._guard:
            return self._sessions.get(session_id)

    def put(self, state: PersonaState) -> None:
        with self._guard:
            self._sessions[state.session_id] = state

    def put_if_absent(self, state: PersonaState) -> bool:
        """Insert state unless its id is taken. Returns True if inserted."""
        with self._guard:
            if state.session_id in self._sessions:
                return False
            self._sessions[state.session_id] = state
            return True

    def delete(self, session_id: str) -> bool:
        with self._guard:
            return self._sessions.pop(session_id, None) is not None

    def sweep(self, predicate: Callable[[PersonaState], bool]) -> list[str]:
        """Delete every session matching predicate.

        Each candidate is re-checked under its own lock, so a session being
        updated is either swept before the update starts or after it ends.

        Returns:
            Ids of deleted sessions
        """
        with self._guard:
            session_ids = list(self._sessions)

        removed: list[str] = []
        for session_id in session_ids:
            with self.lock(session_id):
                state = self.get(session_id)
                if state is not None and predicate(state):
                    self.delete(session_id)
                    removed.append(session_id)
        return removed

    def __contains__(self, session_id: object) -> bool:
        with self._guard:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)
