"""
Unit tests for DiscoveryService
===============================
A peer is listed iff it announced both name and port and was active
within the discovery timeout.
"""

import pytest

from conftest import make_session


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "announced, idle, listed",
    [
        (True, 10, True),
        (True, 500, False),
        (False, 10, False),
        (False, 500, False),
    ],
)
async def test_discoverability_matrix(discovery, registry, clock, announced, idle, listed):
    fields = {"display_name": "alice", "advertised_port": 4001} if announced else {}
    await registry.insert(make_session("a", last_activity=clock.now - idle, **fields))

    peers = await discovery.list_peers()

    assert [p.session_id for p in peers] == (["a"] if listed else [])


@pytest.mark.asyncio
async def test_partial_announcements_are_not_listed(discovery, registry):
    await registry.insert(make_session("name-only", display_name="alice"))
    await registry.insert(make_session("port-only", advertised_port=4001))

    assert await discovery.list_peers() == []


@pytest.mark.asyncio
async def test_discovery_timeout_boundary(discovery, registry, settings, clock):
    await registry.insert(make_session(
        "edge",
        last_activity=clock.now - settings.discovery_timeout,
        display_name="alice",
        advertised_port=4001,
    ))

    assert await discovery.list_peers() == []


@pytest.mark.asyncio
async def test_serialised_shape(discovery, registry):
    await registry.insert(make_session(
        "a", remote_address="203.0.113.7", display_name="alice", advertised_port=4001,
    ))

    peers = await discovery.list_peers()

    assert [p.model_dump(by_alias=True) for p in peers] == [
        {"sessionId": "a", "displayName": "alice", "host": "203.0.113.7", "port": 4001}
    ]


@pytest.mark.asyncio
async def test_listing_has_no_side_effects(discovery, registry, clock):
    session = make_session("a", display_name="alice", advertised_port=4001)
    await registry.insert(session)
    before = session.last_activity

    await discovery.list_peers()
    await discovery.list_peers()

    assert session.last_activity == before
    assert len(registry) == 1
