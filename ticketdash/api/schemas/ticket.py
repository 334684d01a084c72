"""Ticket response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TicketItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    jira_key: str
    summary: str
    status: str
    priority: str
    issue_type: str
    assignee: str | None
    reporter: str | None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None
    labels: str
    project_key: str
    category: str | None
