"""Sync engine — single-flight orchestration of fetch, categorize and persist."""

from ticketdash.engines.sync.events import EventBus
from ticketdash.engines.sync.models import SyncParams, SyncProgress, SyncResult, SyncStatus
from ticketdash.engines.sync.orchestrator import LAST_SYNC_KEY, SyncGuard, SyncOrchestrator

__all__ = [
    "LAST_SYNC_KEY",
    "EventBus",
    "SyncGuard",
    "SyncOrchestrator",
    "SyncParams",
    "SyncProgress",
    "SyncResult",
    "SyncStatus",
]
