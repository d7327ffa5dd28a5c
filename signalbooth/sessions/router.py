"""Routes inbound peer messages to registry updates or relays."""

import json
import logging
import time
from typing import Callable

from pydantic import ValidationError

from signalbooth.config import ServerSettings
from signalbooth.sessions.models import (
    RELAY_TYPES,
    IdentifyPayload,
    MessageType,
    PeerSession,
    RelayEnvelope,
)
from signalbooth.sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Interprets one inbound message at a time for a given sender.

    Negotiation payloads are forwarded untouched apart from the
    ``from`` stamp; the router never looks inside them.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        settings: ServerSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._clock = clock
        self._handlers = {
            MessageType.HEARTBEAT: self._handle_heartbeat,
            MessageType.IDENTIFY: self._handle_identify,
        }
        for relay_type in RELAY_TYPES:
            self._handlers[relay_type] = self._handle_relay

    async def dispatch(self, session_id: str, raw: str | bytes) -> None:
        """Parse and handle a raw frame. Never raises."""
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Dropping unparseable message from {session_id}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Dropping non-object message from {session_id}")
            return

        session = await self._registry.get(session_id)
        if session is None:
            return

        if self._settings.activity_policy == "any":
            session.last_activity = self._clock()

        try:
            message_type = MessageType(data.get("type"))
        except ValueError:
            logger.debug(f"Ignoring unknown message type {data.get('type')!r} from {session_id}")
            return

        handler = self._handlers.get(message_type)
        if handler is None:
            logger.debug(f"Ignoring server-only message type {message_type.value} from {session_id}")
            return

        try:
            await handler(session, data)
        except Exception as e:
            logger.error(f"Error handling {message_type.value} from {session_id}: {e}", exc_info=True)

    async def _handle_heartbeat(self, session: PeerSession, data: dict) -> None:
        session.last_activity = self._clock()

    async def _handle_identify(self, session: PeerSession, data: dict) -> None:
        payload = IdentifyPayload.model_validate(data)
        if payload.display_name is not None:
            session.display_name = payload.display_name
        if payload.advertised_port is not None:
            session.advertised_port = payload.advertised_port
        logger.info(
            f"Peer {session.session_id} identified as @{session.display_name} "
            f"(port {session.advertised_port})"
        )

    async def _handle_relay(self, session: PeerSession, data: dict) -> None:
        try:
            envelope = RelayEnvelope.model_validate(data)
        except ValidationError:
            logger.warning(f"Dropping {data.get('type')} from {session.session_id}: missing 'to'")
            return

        target = await self._registry.get(envelope.to)
        if target is None or not target.connection.is_open:
            logger.debug(f"Relay target {envelope.to} unavailable, dropping {envelope.type.value}")
            return

        forwarded = dict(data)
        forwarded["from"] = session.session_id
        await target.connection.send(forwarded)
