"""BackgroundScheduler — periodic sync through the shared single-flight guard."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from ticketdash.engines.sync.models import SyncParams, SyncResult
from ticketdash.engines.sync.orchestrator import SyncOrchestrator
from ticketdash.services import ConfigurationError, SyncAlreadyInProgressError

logger = structlog.get_logger(__name__)


class BackgroundScheduler:
    """Fire the orchestrator every ``interval_minutes``; 0 disables it.

    A tick that finds a sync already running is skipped and logged. Missing
    connection settings are reported as a ``background-sync-error`` event.
    Other failures are logged and the loop keeps going. :meth:`stop` ends the
    loop and waits for an in-flight sync to finish.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        interval_minutes: float,
        params_provider: Callable[[], SyncParams],
    ) -> None:
        self.orchestrator = orchestrator
        self.interval_minutes = interval_minutes
        self._params_provider = params_provider
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[SyncResult | None] | None = None

    @property
    def enabled(self) -> bool:
        return self.interval_minutes > 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    async def start(self) -> None:
        if not self.enabled:
            logger.info("scheduler.disabled", interval_minutes=self.interval_minutes)
            return
        if self._running:
            logger.warning("scheduler.already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="ticketdash-background-sync")
        logger.info("scheduler.started", interval_minutes=self.interval_minutes)

    async def stop(self) -> None:
        """Stop arming new ticks, then wait out a sync that is in flight."""
        self._running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        inflight, self._inflight = self._inflight, None
        if inflight is not None and not inflight.done():
            logger.info("scheduler.waiting_for_inflight")
            await asyncio.gather(inflight, return_exceptions=True)
        logger.info("scheduler.stopped")

    async def tick(self) -> SyncResult | None:
        """Run one background sync; returns None when skipped or failed."""
        logger.info("scheduler.tick")
        try:
            params = self._params_provider()
        except ConfigurationError as exc:
            self.orchestrator.report_failure(exc, trigger="background")
            return None
        try:
            return await self.orchestrator.run(params, trigger="background")
        except SyncAlreadyInProgressError:
            logger.info("scheduler.tick_skipped", reason="sync already in progress")
        except Exception:
            logger.exception("scheduler.tick_failed")
        return None

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            if not self._running:
                break
            self._inflight = asyncio.ensure_future(self.tick())
            # Shielded so stop() cancelling the loop leaves the sync running.
            await asyncio.shield(self._inflight)
