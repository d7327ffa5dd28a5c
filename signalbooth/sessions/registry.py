"""In-memory registry of connected peer sessions."""

import asyncio

from signalbooth.sessions.models import PeerSession


class DuplicateSessionError(KeyError):
    """Raised when inserting a session id that is already registered."""


class SessionRegistry:
    """Maps session ids to live sessions. Holds no business logic."""

    def __init__(self) -> None:
        self._sessions: dict[str, PeerSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def insert(self, session: PeerSession) -> None:
        async with self._lock:
            if session.session_id in self._sessions:
                raise DuplicateSessionError(session.session_id)
            self._sessions[session.session_id] = session

    async def get(self, session_id: str) -> PeerSession | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> PeerSession | None:
        """Remove a session. Returns None if it was already gone."""
        async with self._lock:
            return self._sessions.pop(session_id, None)

    async def snapshot(self) -> list[PeerSession]:
        """Return a point-in-time copy of all sessions for iteration."""
        async with self._lock:
            return list(self._sessions.values())
