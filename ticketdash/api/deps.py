"""Dependency injection — store, sync service, and bearer-token extraction."""

from __future__ import annotations

import functools

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ticketdash.core.config import Settings
from ticketdash.dao.ticket_dao import TicketDAO
from ticketdash.engines.sync.events import EventBus
from ticketdash.engines.sync.orchestrator import SyncGuard, SyncOrchestrator
from ticketdash.engines.ticket_fetcher.jira_client import JiraClient
from ticketdash.services import AuthenticationError
from ticketdash.services.aggregation_service import AggregationService
from ticketdash.services.sync_service import SyncService
from ticketdash.store import TicketStore

# ---------------------------------------------------------------------------
# Process-wide singletons
# ---------------------------------------------------------------------------
_event_bus = EventBus()
_sync_guard = SyncGuard()
_aggregation_service = AggregationService(TicketDAO())

# ---------------------------------------------------------------------------
# Store-bound objects (initialised by app lifespan)
# ---------------------------------------------------------------------------
_store: TicketStore | None = None
_orchestrator: SyncOrchestrator | None = None
_sync_service: SyncService | None = None


def init_services(settings: Settings) -> SyncService:
    """Build the store, orchestrator and facade. Called once at startup.

    The store is created closed; the caller opens it.
    """
    global _store, _orchestrator, _sync_service  # noqa: PLW0603
    client_factory = functools.partial(JiraClient, timeout=settings.http_timeout)
    _store = TicketStore(settings.db_path)
    _orchestrator = SyncOrchestrator(_store, _sync_guard, _event_bus, client_factory)
    _sync_service = SyncService(_store, _orchestrator, _aggregation_service, client_factory)
    return _sync_service


async def close_store() -> None:
    """Close the store, releasing its worker thread and connections."""
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
        _store = None


def set_sync_service(service: SyncService) -> None:
    """Override the sync service (for testing)."""
    global _sync_service  # noqa: PLW0603
    _sync_service = service


# ---------------------------------------------------------------------------
# Jira token dependency
# ---------------------------------------------------------------------------

_bearer = HTTPBearer(auto_error=False)


async def get_jira_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """The Jira API token passed as ``Authorization: Bearer <token>``."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing authorization header")
    return credentials.credentials


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def get_event_bus() -> EventBus:
    return _event_bus


def get_sync_guard() -> SyncGuard:
    return _sync_guard


def get_aggregation_service() -> AggregationService:
    return _aggregation_service


def get_store() -> TicketStore:
    if _store is None:
        raise RuntimeError("call init_services() before handling requests")
    return _store


def get_orchestrator() -> SyncOrchestrator:
    if _orchestrator is None:
        raise RuntimeError("call init_services() before handling requests")
    return _orchestrator


def get_sync_service() -> SyncService:
    if _sync_service is None:
        raise RuntimeError("call init_services() before handling requests")
    return _sync_service
