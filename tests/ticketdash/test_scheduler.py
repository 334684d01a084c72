"""Unit tests for BackgroundScheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ticketdash.engines.sync import EventBus, SyncGuard, SyncOrchestrator
from ticketdash.engines.sync.events import BACKGROUND_SYNC_ERROR
from ticketdash.engines.sync.models import SyncParams, SyncResult
from ticketdash.scheduler import BackgroundScheduler
from ticketdash.services import ConfigurationError, SyncAlreadyInProgressError

PARAMS = SyncParams("https://example.atlassian.net", "a@b.c", "t", '{"categoryRules": []}')


async def _wait_until(predicate, interval: float = 0.005) -> None:
    while not predicate():
        await asyncio.sleep(interval)


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.run = AsyncMock(return_value=SyncResult(synced=1, last_sync="now", trigger="background"))
    return orch


async def test_disabled_at_zero_interval(orchestrator):
    scheduler = BackgroundScheduler(orchestrator, 0, lambda: PARAMS)
    await scheduler.start()
    assert not scheduler.enabled
    assert not scheduler.running
    await scheduler.stop()
    orchestrator.run.assert_not_called()


async def test_tick_runs_background_sync(orchestrator):
    scheduler = BackgroundScheduler(orchestrator, 5, lambda: PARAMS)
    result = await scheduler.tick()
    assert result.synced == 1
    orchestrator.run.assert_awaited_once_with(PARAMS, trigger="background")


async def test_tick_skipped_when_sync_in_progress(orchestrator):
    orchestrator.run.side_effect = SyncAlreadyInProgressError("busy")
    scheduler = BackgroundScheduler(orchestrator, 5, lambda: PARAMS)
    assert await scheduler.tick() is None


async def test_tick_failure_is_logged_not_raised(orchestrator):
    orchestrator.run.side_effect = RuntimeError("remote down")
    scheduler = BackgroundScheduler(orchestrator, 5, lambda: PARAMS)
    assert await scheduler.tick() is None


async def test_missing_params_reported_not_raised(orchestrator):
    def _provider():
        raise ConfigurationError("missing Jira connection settings")

    scheduler = BackgroundScheduler(orchestrator, 5, _provider)
    assert await scheduler.tick() is None
    orchestrator.run.assert_not_called()
    [call] = orchestrator.report_failure.call_args_list
    assert isinstance(call.args[0], ConfigurationError)
    assert call.kwargs == {"trigger": "background"}


async def test_missing_params_emits_background_error(store):
    events = []
    bus = EventBus()
    bus.subscribe(lambda name, payload: events.append((name, payload)))
    orch = SyncOrchestrator(store, SyncGuard(), bus, MagicMock())

    def _provider():
        raise ConfigurationError("missing settings: TICKETDASH_JIRA_TOKEN")

    scheduler = BackgroundScheduler(orch, 5, _provider)
    assert await scheduler.tick() is None
    assert events == [(BACKGROUND_SYNC_ERROR, "missing settings: TICKETDASH_JIRA_TOKEN")]
    assert not orch.guard.active


async def test_loop_waits_one_interval_then_fires(orchestrator):
    scheduler = BackgroundScheduler(orchestrator, 0.001, lambda: PARAMS)  # 60 ms
    await scheduler.start()
    try:
        assert orchestrator.run.await_count == 0
        await asyncio.wait_for(_wait_until(lambda: orchestrator.run.await_count >= 2), timeout=2.0)
    finally:
        await scheduler.stop()
    assert not scheduler.running


async def test_loop_survives_failures(orchestrator):
    orchestrator.run.side_effect = [RuntimeError("boom"), SyncAlreadyInProgressError("busy"), None]
    scheduler = BackgroundScheduler(orchestrator, 0.001, lambda: PARAMS)
    await scheduler.start()
    try:
        await asyncio.wait_for(_wait_until(lambda: orchestrator.run.await_count >= 3), timeout=2.0)
    finally:
        await scheduler.stop()


async def test_stop_waits_for_inflight_sync(orchestrator):
    gate = asyncio.Event()
    started = asyncio.Event()
    finished = []

    async def _slow_run(params, *, trigger):
        started.set()
        await gate.wait()
        finished.append(trigger)

    orchestrator.run.side_effect = _slow_run
    scheduler = BackgroundScheduler(orchestrator, 0.001, lambda: PARAMS)
    await scheduler.start()
    await asyncio.wait_for(started.wait(), timeout=2.0)

    stopping = asyncio.create_task(scheduler.stop())
    await asyncio.sleep(0.05)
    assert not stopping.done()
    assert finished == []
    assert not scheduler.running

    gate.set()
    await asyncio.wait_for(stopping, timeout=2.0)
    assert finished == ["background"]
    assert orchestrator.run.await_count == 1
