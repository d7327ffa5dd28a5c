"""Periodic eviction of sessions that stopped showing activity."""

import asyncio
import logging
import time
from typing import Callable

from signalbooth.config import ServerSettings
from signalbooth.sessions.lifecycle import SessionLifecycle
from signalbooth.sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Sweeps the registry on a fixed period and evicts stale sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        lifecycle: SessionLifecycle,
        settings: ServerSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._lifecycle = lifecycle
        self._settings = settings
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        logger.info(
            f"Liveness monitor started: sweep every {self._settings.sweep_interval}s, "
            f"timeout {self._settings.eviction_timeout}s"
        )
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Liveness monitor stopped")

    async def sweep(self) -> list[str]:
        """Evict every session idle longer than the timeout."""
        now = self._clock()
        evicted = []
        for session in await self._registry.snapshot():
            if now - session.last_activity <= self._settings.eviction_timeout:
                continue
            # False when a concurrent close already removed it
            if await self._lifecycle.evict(session.session_id):
                evicted.append(session.session_id)
        return evicted

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.sweep_interval)
            try:
                evicted = await self.sweep()
                if evicted:
                    logger.info(f"Evicted {len(evicted)} stale peer(s), {len(self._registry)} remaining")
            except Exception:
                logger.exception("Liveness sweep failed")
