"""WebSocket transport for peer sessions."""

import asyncio
import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from signalbooth.sessions.lifecycle import SessionLifecycle
from signalbooth.sessions.router import MessageRouter

logger = logging.getLogger(__name__)


class PeerConnection:
    """Wraps one accepted WebSocket and serialises outbound messages."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._send_lock = asyncio.Lock()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send(self, message: dict) -> bool:
        """Send a JSON text frame. Returns False instead of raising."""
        if not self.is_open:
            return False
        async with self._send_lock:
            try:
                await self._websocket.send_text(json.dumps(message))
                return True
            except Exception as e:
                logger.debug(f"WebSocket send failed: {e}")
                self._closed = True
                return False

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.debug(f"WebSocket close failed: {e}")


def client_address(websocket: WebSocket, trust_forwarded: bool) -> str:
    """Best-effort source address; a proxy's X-Forwarded-For wins when trusted."""
    if trust_forwarded:
        forwarded = websocket.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if websocket.client is not None:
        return websocket.client.host
    return "unknown"


async def serve_peer(
    websocket: WebSocket,
    lifecycle: SessionLifecycle,
    router: MessageRouter,
    trust_forwarded: bool,
) -> None:
    """Run one peer connection from accept to teardown."""
    await websocket.accept()
    connection = PeerConnection(websocket)
    session = await lifecycle.open_session(connection, client_address(websocket, trust_forwarded))
    session_id = session.session_id

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is not None:
                await router.dispatch(session_id, raw)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"Transport error on session {session_id}: {e}", exc_info=True)
    finally:
        connection.mark_closed()
        await lifecycle.close_session(session_id)
