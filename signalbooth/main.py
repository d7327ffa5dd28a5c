"""
Signal Booth: FastAPI application entry point.

Serves the peer WebSocket endpoint, the discovery and account REST
routes, and runs the liveness monitor in the background.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from signalbooth.api.routes import router, status
from signalbooth.api.websocket import serve_peer
from signalbooth.config import API_HOST, API_PORT, LOG_LEVEL, ServerSettings
from signalbooth.discovery.service import DiscoveryService
from signalbooth.security.credentials import CredentialStore
from signalbooth.sessions.lifecycle import SessionLifecycle
from signalbooth.sessions.liveness import LivenessMonitor
from signalbooth.sessions.registry import SessionRegistry
from signalbooth.sessions.router import MessageRouter

# --- Logging ---
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build the application with a fresh registry and services."""
    settings = settings or ServerSettings()

    registry = SessionRegistry()
    lifecycle = SessionLifecycle(registry, settings)
    message_router = MessageRouter(registry, settings)
    monitor = LivenessMonitor(registry, lifecycle, settings)
    discovery_service = DiscoveryService(registry, settings)
    credential_store = CredentialStore(settings.users_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start/stop background services."""
        logger.info("Starting Signal Booth services...")
        try:
            credential_store.load()
            await monitor.start()
            logger.info(f"Signal Booth ready on {API_HOST}:{API_PORT}")
            yield
        except Exception as e:
            logger.error(f"Startup failed: {e}", exc_info=True)
            raise
        finally:
            logger.info("Shutting down Signal Booth services...")
            await monitor.stop()

    app = FastAPI(
        title="Signal Booth",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.lifecycle = lifecycle
    app.state.message_router = message_router
    app.state.liveness_monitor = monitor
    app.state.discovery_service = discovery_service
    app.state.credential_store = credential_store
    app.state.started_at = time.monotonic()

    app.include_router(router)

    @app.websocket("/")
    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await serve_peer(websocket, lifecycle, message_router, settings.trust_forwarded)

    # --- Static Files (landing page + downloads) ---
    index_file = settings.static_dir / "index.html"
    if settings.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")
    if settings.downloads_dir.is_dir():
        app.mount("/downloads", StaticFiles(directory=settings.downloads_dir), name="downloads")

    if index_file.is_file():
        @app.get("/")
        async def read_index():
            return FileResponse(index_file)
    else:
        logger.debug(f"No landing page at {index_file}; serving status at /")
        app.add_api_route("/", status, methods=["GET"])

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
