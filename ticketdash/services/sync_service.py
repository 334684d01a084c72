"""SyncService — the on-demand operations exposed to the API and CLI."""

from __future__ import annotations

from typing import Any

import structlog

from ticketdash.engines.sync.models import SyncParams, SyncResult, SyncStatus
from ticketdash.engines.sync.orchestrator import (
    LAST_SYNC_KEY,
    ClientFactory,
    SyncOrchestrator,
    require_connection,
)
from ticketdash.engines.ticket_fetcher.jira_client import JiraClient
from ticketdash.models.ticket import Ticket
from ticketdash.services.aggregation_service import AggregationResult, AggregationService
from ticketdash.store import TicketStore

log = structlog.get_logger(__name__)


class SyncService:
    """Facade over the orchestrator, the store and the aggregation engine."""

    def __init__(
        self,
        store: TicketStore,
        orchestrator: SyncOrchestrator,
        aggregation_service: AggregationService,
        client_factory: ClientFactory = JiraClient,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._aggregation = aggregation_service
        self._client_factory = client_factory

    async def trigger_sync(self, params: SyncParams) -> SyncResult:
        """Run a manual sync.

        Raises :class:`ConfigurationError` for blank connection parameters or
        a bad rule payload and :class:`SyncAlreadyInProgressError` when another
        sync holds the guard. Fetch and store failures propagate unchanged.
        """
        return await self._orchestrator.run(params, trigger="manual")

    async def get_sync_status(self) -> SyncStatus:
        last_sync_at = await self._store.get_sync_cursor(LAST_SYNC_KEY)
        return SyncStatus(
            is_syncing=self._orchestrator.guard.active,
            last_sync_at=last_sync_at,
        )

    async def get_tickets(
        self,
        *,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
    ) -> list[Ticket]:
        return await self._store.get_tickets(status=status, priority=priority, category=category)

    async def get_dashboard(self) -> AggregationResult:
        return await self._aggregation.compute_aggregations(self._store)

    async def verify_connection(self, jira_url: str, email: str, token: str) -> dict[str, Any]:
        """Prove the credentials work against the remote; fetch errors propagate."""
        require_connection(jira_url, email, token)
        async with self._client_factory(jira_url, email, token) as client:
            result = await client.verify_connection()
        log.info("jira.connection_verified", jira_url=jira_url, email=email)
        return result
