"""Periodic eviction of abandoned OAuth transactions."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from app.clients.state_store import StateStore

logger = logging.getLogger(__name__)


class StateSweeper:
    """Call ``store.sweep()`` every ``interval_seconds`` until stopped."""

    def __init__(self, store: StateStore, *, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive.")
        self._store = store
        self._interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        removed = await self._store.sweep()
        if removed:
            logger.info("Swept %d expired OAuth transaction(s)", removed)
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("OAuth state sweep failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="oauth-state-sweeper")
        logger.info("State sweeper started (interval=%ss)", self._interval_seconds)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("State sweeper stopped")


__all__ = ["StateSweeper"]
