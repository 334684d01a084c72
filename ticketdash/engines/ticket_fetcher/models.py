"""Data models for the ticket fetcher engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

LABEL_DELIMITER = ","


@dataclass
class FetchedTicket:
    """A single issue mirrored from the remote tracker.

    A pure data structure with no DB dependencies. Field names match
    the ``tickets`` columns so a ticket converts to an upsert row directly.
    """

    jira_key: str
    summary: str
    status: str
    priority: str
    issue_type: str
    created_at: datetime
    updated_at: datetime
    project_key: str
    labels: str = ""  # comma-separated
    assignee: str | None = None
    reporter: str | None = None
    resolved_at: datetime | None = None
    category: str | None = None  # computed locally

    @property
    def label_list(self) -> list[str]:
        return [label for label in self.labels.split(LABEL_DELIMITER) if label]

    def to_row(self) -> dict[str, Any]:
        return asdict(self)
