"""Fire-and-forget lifecycle/progress notifications for sync runs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger(__name__)

Listener = Callable[[str, Any], None]

SYNC_STARTED = "sync-started"
SYNC_PROGRESS = "sync-progress"
SYNC_COMPLETE = "sync-complete"
SYNC_ERROR = "sync-error"
BACKGROUND_SYNC_STARTED = "background-sync-started"
BACKGROUND_SYNC_COMPLETE = "background-sync-complete"
BACKGROUND_SYNC_ERROR = "background-sync-error"


@dataclass(frozen=True)
class EventNames:
    started: str
    complete: str
    error: str
    progress: str | None


MANUAL_EVENTS = EventNames(SYNC_STARTED, SYNC_COMPLETE, SYNC_ERROR, SYNC_PROGRESS)
BACKGROUND_EVENTS = EventNames(
    BACKGROUND_SYNC_STARTED, BACKGROUND_SYNC_COMPLETE, BACKGROUND_SYNC_ERROR, None
)


class EventBus:
    """Observer registry the orchestrator publishes to.

    Delivery is best-effort: a listener that raises is logged and skipped,
    never failing the publisher.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, name: str, payload: Any = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, payload)
            except Exception:
                log.warning("events.listener_failed", event_name=name, exc_info=True)
