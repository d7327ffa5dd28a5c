"""
Discovery over the session registry.

Answers "who can I connect to right now" with the peers that have
announced both a name and a port and were active recently.
"""

import logging
import time
from typing import Callable

from signalbooth.config import ServerSettings
from signalbooth.discovery.models import DiscoveredPeer
from signalbooth.sessions.models import PeerSession
from signalbooth.sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Read-only view of discoverable peers."""

    def __init__(
        self,
        registry: SessionRegistry,
        settings: ServerSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._clock = clock

    def is_discoverable(self, session: PeerSession, now: float) -> bool:
        return (
            session.is_announced
            and now - session.last_activity < self._settings.discovery_timeout
        )

    async def list_peers(self) -> list[DiscoveredPeer]:
        """Return a list of currently discoverable peers."""
        now = self._clock()
        peers = [
            DiscoveredPeer(
                session_id=session.session_id,
                display_name=session.display_name,
                host=session.remote_address,
                port=session.advertised_port,
            )
            for session in await self._registry.snapshot()
            if self.is_discoverable(session, now)
        ]
        logger.debug(f"Discovery returned {len(peers)} of {len(self._registry)} peers")
        return peers
