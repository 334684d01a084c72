"""Data models for the sync engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

SyncTrigger = Literal["manual", "background"]


@dataclass
class SyncParams:
    """Connection parameters and rule payload for one sync run."""

    jira_url: str
    email: str
    token: str = field(repr=False)
    category_rules_json: str


@dataclass
class SyncProgress:
    phase: str  # fetching | categorizing | saving
    current: int
    total: int | None = None


@dataclass
class SyncResult:
    """Summary of a completed sync."""

    synced: int
    last_sync: str
    errors: int = 0
    trigger: SyncTrigger = "manual"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SyncStatus:
    is_syncing: bool
    last_sync_at: str | None
    # Failures are emitted as events but not recorded, so this stays None.
    last_error: str | None = None
