try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import logging

import pytest

from app.clients.state_store import InMemoryStateStore
from app.models.oauth import OAuthTransactionState
from app.services.state_sweeper import StateSweeper

pytestmark = pytest.mark.anyio


class CountingStore:
    def __init__(self, fail: bool = False) -> None:
        self.sweeps = 0
        self.fail = fail

    async def sweep(self) -> int:
        self.sweeps += 1
        if self.fail:
            raise RuntimeError("store offline")
        return 0


async def test_run_once_evicts_abandoned_transactions(clock, caplog) -> None:
    store = InMemoryStateStore(clock=clock)
    state = OAuthTransactionState(domain="shop-a.com", timestamp=int(clock() * 1000))
    await store.put("abandoned", state, 600)
    clock.advance(601)

    with caplog.at_level(logging.INFO, logger="app.services.state_sweeper"):
        removed = await StateSweeper(store, interval_seconds=300).run_once()

    assert removed == 1
    assert len(store) == 0
    assert "Swept 1 expired" in caplog.text


async def test_background_task_sweeps_periodically_until_stopped() -> None:
    store = CountingStore()
    sweeper = StateSweeper(store, interval_seconds=0.01)

    sweeper.start()
    await asyncio.sleep(0.1)
    await sweeper.stop()
    sweeps = store.sweeps
    await asyncio.sleep(0.05)

    assert sweeps >= 2
    assert store.sweeps == sweeps
    assert not sweeper.running


async def test_sweep_failures_are_logged_and_do_not_stop_the_task(caplog) -> None:
    store = CountingStore(fail=True)
    sweeper = StateSweeper(store, interval_seconds=0.01)

    with caplog.at_level(logging.ERROR, logger="app.services.state_sweeper"):
        sweeper.start()
        await asyncio.sleep(0.1)
        assert sweeper.running
        await sweeper.stop()

    assert store.sweeps >= 2
    assert "OAuth state sweep failed" in caplog.text


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        StateSweeper(CountingStore(), interval_seconds=0)
