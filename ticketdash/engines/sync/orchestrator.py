"""SyncOrchestrator — single-flight fetch → categorize → persist → cursor advance."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timezone

import structlog

from ticketdash.engines.categorizer import CategoryRule, categorize, parse_rules
from ticketdash.engines.sync.events import (
    BACKGROUND_EVENTS,
    MANUAL_EVENTS,
    EventBus,
    EventNames,
)
from ticketdash.engines.sync.models import SyncParams, SyncProgress, SyncResult, SyncTrigger
from ticketdash.engines.ticket_fetcher.jira_client import JiraClient
from ticketdash.services import ConfigurationError, SyncAlreadyInProgressError
from ticketdash.store import TicketStore

log = structlog.get_logger("ticketdash.engine")

LAST_SYNC_KEY = "last_sync_at"
PROGRESS_STRIDE = 10

ClientFactory = Callable[[str, str, str], JiraClient]


def require_connection(jira_url: str, email: str, token: str) -> None:
    """Raise :class:`ConfigurationError` naming every blank parameter."""
    missing = [
        name
        for name, value in (("jira_url", jira_url), ("email", email), ("token", token))
        if not value or not value.strip()
    ]
    if missing:
        raise ConfigurationError(f"missing connection parameters: {', '.join(missing)}")


def _event_names(trigger: SyncTrigger) -> EventNames:
    return BACKGROUND_EVENTS if trigger == "background" else MANUAL_EVENTS


class SyncGuard:
    """At most one sync at a time, shared by manual and background triggers.

    The lock is held only for the check-and-set, never across the sync
    itself. A second :meth:`acquire` while active fails immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def acquire(self) -> None:
        with self._lock:
            if self._active:
                raise SyncAlreadyInProgressError("sync is already in progress")
            self._active = True

    def release(self) -> None:
        with self._lock:
            self._active = False


class SyncOrchestrator:
    """Runs one sync end to end and reports it on the event bus."""

    def __init__(
        self,
        store: TicketStore,
        guard: SyncGuard,
        bus: EventBus,
        client_factory: ClientFactory = JiraClient,
    ) -> None:
        self._store = store
        self._guard = guard
        self._bus = bus
        self._client_factory = client_factory

    @property
    def guard(self) -> SyncGuard:
        return self._guard

    async def run(self, params: SyncParams, *, trigger: SyncTrigger = "manual") -> SyncResult:
        """Sync tickets from Jira into the store.

        1. Check connection parameters and parse the rule payload (fails
           before any network call)
        2. Take the guard (fails fast if another sync is running)
        3. Fetch since the stored cursor, categorize, persist
        4. Advance the cursor in the same transaction as the upserts

        Raises :class:`SyncAlreadyInProgressError`, :class:`ConfigurationError`,
        fetch errors and :class:`StoreError`. Every failure except the
        already-in-progress case is also emitted as an error event.
        """
        events = _event_names(trigger)

        try:
            require_connection(params.jira_url, params.email, params.token)
            rules = parse_rules(params.category_rules_json)
        except ConfigurationError as exc:
            self.report_failure(exc, trigger=trigger)
            raise

        self._guard.acquire()
        try:
            result = await self._run_guarded(params, rules, events, trigger)
        except Exception as exc:
            self.report_failure(exc, trigger=trigger)
            raise

        log.info("sync.completed", trigger=trigger, synced=result.synced)
        self._bus.emit(events.complete, result.to_dict())
        return result

    async def _run_guarded(
        self,
        params: SyncParams,
        rules: list[CategoryRule],
        events: EventNames,
        trigger: SyncTrigger,
    ) -> SyncResult:
        try:
            log.info("sync.started", trigger=trigger)
            self._bus.emit(events.started)
            return await self._perform(params, rules, events, trigger)
        finally:
            self._guard.release()

    async def _perform(
        self,
        params: SyncParams,
        rules: list[CategoryRule],
        events: EventNames,
        trigger: SyncTrigger,
    ) -> SyncResult:
        cursor = await self._store.get_sync_cursor(LAST_SYNC_KEY)

        self._progress(events, "fetching", 0, None)
        async with self._client_factory(params.jira_url, params.email, params.token) as client:
            tickets = await client.fetch_tickets(cursor)
        log.info("sync.fetched", tickets=len(tickets), backfill=cursor is None)

        total = len(tickets)
        self._progress(events, "categorizing", 0, total)
        for idx, ticket in enumerate(tickets):
            ticket.category = categorize(ticket, rules)
            if idx and idx % PROGRESS_STRIDE == 0:
                self._progress(events, "categorizing", idx, total)

        self._progress(events, "saving", 0, total)
        now = datetime.now(timezone.utc).isoformat()
        await self._store.save_sync_batch(tickets, LAST_SYNC_KEY, now)

        return SyncResult(synced=total, last_sync=now, trigger=trigger)

    def _progress(self, events: EventNames, phase: str, current: int, total: int | None) -> None:
        if events.progress is None:
            return
        self._bus.emit(events.progress, asdict(SyncProgress(phase, current, total)))

    def report_failure(self, exc: Exception, *, trigger: SyncTrigger = "manual") -> None:
        """Log *exc* and emit it as the trigger's error event."""
        events = _event_names(trigger)
        log.error("sync.failed", trigger=trigger, error=str(exc), error_type=type(exc).__name__)
        self._bus.emit(events.error, str(exc))
