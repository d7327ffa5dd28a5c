"""Shared fixtures: fake transport, controllable clock, wired services."""

import pytest

from signalbooth.config import ServerSettings
from signalbooth.discovery.service import DiscoveryService
from signalbooth.sessions.lifecycle import SessionLifecycle
from signalbooth.sessions.liveness import LivenessMonitor
from signalbooth.sessions.models import PeerSession
from signalbooth.sessions.registry import SessionRegistry
from signalbooth.sessions.router import MessageRouter


class FakeConnection:
    """In-memory stand-in for a peer's WebSocket."""

    def __init__(self, is_open=True):
        self.is_open = is_open
        self.sent = []
        self.closed_with = None

    async def send(self, message):
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    async def close(self, code=1000, reason=None):
        self.is_open = False
        self.closed_with = (code, reason)

    def of_type(self, message_type):
        return [m for m in self.sent if m.get("type") == message_type]


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_session(session_id, connection=None, last_activity=1000.0, **fields):
    return PeerSession(
        session_id=session_id,
        connection=connection or FakeConnection(),
        remote_address=fields.pop("remote_address", "10.0.0.1"),
        last_activity=last_activity,
        connected_at=last_activity,
        **fields,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return ServerSettings(
        sweep_interval=30,
        eviction_timeout=90,
        discovery_timeout=120,
        activity_policy="heartbeat",
        broadcast_presence=True,
        trust_forwarded=True,
        users_file=tmp_path / "users.json",
        static_dir=tmp_path / "public",
        downloads_dir=tmp_path / "downloads",
        cors_origins=["*"],
    )


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def lifecycle(registry, settings, clock):
    return SessionLifecycle(registry, settings, clock=clock)


@pytest.fixture
def router(registry, settings, clock):
    return MessageRouter(registry, settings, clock=clock)


@pytest.fixture
def monitor(registry, lifecycle, settings, clock):
    return LivenessMonitor(registry, lifecycle, settings, clock=clock)


@pytest.fixture
def discovery(registry, settings, clock):
    return DiscoveryService(registry, settings, clock=clock)
