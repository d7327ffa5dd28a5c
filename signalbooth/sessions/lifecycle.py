"""
Session lifecycle controller.

Owns connect and teardown for peer sessions: issues session ids,
registers sessions, sends the YOUR_ID handshake and fans out presence
notices. Client-initiated close and liveness eviction share one
removal path so a session is only ever torn down once.
"""

import logging
import time
import uuid
from typing import Callable

from signalbooth.config import MAX_ID_ATTEMPTS, ServerSettings
from signalbooth.sessions.models import MessageType, PeerSession
from signalbooth.sessions.registry import DuplicateSessionError, SessionRegistry

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """128-bit random id, opaque to clients."""
    return uuid.uuid4().hex


class SessionLifecycle:
    """Creates and destroys peer sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        settings: ServerSettings,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._clock = clock
        self._id_factory = id_factory

    async def open_session(self, connection, remote_address: str) -> PeerSession:
        """Register a freshly accepted connection and send it its id."""
        now = self._clock()
        for attempt in range(MAX_ID_ATTEMPTS):
            session = PeerSession(
                session_id=self._id_factory(),
                connection=connection,
                remote_address=remote_address,
                last_activity=now,
                connected_at=now,
            )
            try:
                await self._registry.insert(session)
                break
            except DuplicateSessionError:
                logger.warning(f"Session id collision on attempt {attempt + 1}, retrying")
        else:
            raise RuntimeError("Could not allocate a unique session id")

        logger.info(
            f"[+] Peer connected: {session.session_id} - IP: {remote_address} "
            f"- Total: {len(self._registry)}"
        )

        await connection.send({"type": MessageType.YOUR_ID.value, "sessionId": session.session_id})

        if self._settings.broadcast_presence:
            await self.broadcast(
                {"type": MessageType.NEW_PEER.value, "sessionId": session.session_id},
                exclude=session.session_id,
            )
        return session

    async def close_session(self, session_id: str) -> bool:
        """Tear down after the transport closed. Safe to call repeatedly."""
        return await self._teardown(session_id, close_connection=False)

    async def evict(self, session_id: str) -> bool:
        """Tear down a stale session, closing its connection if still open."""
        return await self._teardown(session_id, close_connection=True)

    async def _teardown(self, session_id: str, close_connection: bool) -> bool:
        session = await self._registry.remove(session_id)
        if session is None:
            return False

        name = session.display_name or "unknown"
        if close_connection:
            logger.info(f"[TIMEOUT] Inactive peer evicted: {session_id} (@{name})")
            if session.connection.is_open:
                await session.connection.close(code=1001, reason="inactivity timeout")
        else:
            logger.info(
                f"[-] Peer disconnected: {session_id} (@{name}) - Total: {len(self._registry)}"
            )

        if self._settings.broadcast_presence:
            await self.broadcast({"type": MessageType.PEER_LEFT.value, "sessionId": session_id})
        return True

    async def broadcast(self, message: dict, exclude: str | None = None) -> int:
        """Best-effort fan-out to every open session. Returns deliveries."""
        delivered = 0
        for session in await self._registry.snapshot():
            if session.session_id == exclude or not session.connection.is_open:
                continue
            if await session.connection.send(message):
                delivered += 1
        return delivered
