"""
Unit tests for SessionRegistry
==============================
Insert/get/remove semantics, duplicate detection and snapshots.
"""

import pytest

from conftest import make_session
from signalbooth.sessions.registry import DuplicateSessionError


class TestSessionRegistry:

    @pytest.mark.asyncio
    async def test_insert_and_get(self, registry):
        session = make_session("a")
        await registry.insert(session)

        assert await registry.get("a") is session
        assert "a" in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, registry):
        assert await registry.get("missing") is None

    @pytest.mark.asyncio
    async def test_double_insert_is_detected(self, registry):
        await registry.insert(make_session("a"))

        with pytest.raises(DuplicateSessionError):
            await registry.insert(make_session("a"))
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, registry):
        session = make_session("a")
        await registry.insert(session)
        await registry.insert(make_session("b"))

        assert await registry.remove("a") is session
        assert await registry.remove("a") is None
        assert len(registry) == 1
        assert "b" in registry

    @pytest.mark.asyncio
    async def test_insert_after_remove_is_allowed(self, registry):
        await registry.insert(make_session("a"))
        await registry.remove("a")
        await registry.insert(make_session("a"))

        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_snapshot_is_independent_copy(self, registry):
        await registry.insert(make_session("a"))
        await registry.insert(make_session("b"))

        snapshot = await registry.snapshot()
        await registry.remove("a")
        await registry.insert(make_session("c"))

        assert sorted(s.session_id for s in snapshot) == ["a", "b"]
        assert sorted(s.session_id for s in await registry.snapshot()) == ["b", "c"]
