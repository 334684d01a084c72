"""Shared fixtures for ticketdash tests.

Every store fixture is backed by a real SQLite file under ``tmp_path``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from ticketdash.engines.ticket_fetcher.models import FetchedTicket
from ticketdash.store import TicketStore

BASE_TIME = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def _make_ticket(key: str = "PROJ-1", **overrides: Any) -> FetchedTicket:
    fields: dict[str, Any] = {
        "jira_key": key,
        "summary": f"Ticket {key}",
        "status": "Open",
        "priority": "Medium",
        "issue_type": "Task",
        "created_at": BASE_TIME,
        "updated_at": BASE_TIME,
        "project_key": key.split("-")[0],
    }
    fields.update(overrides)
    return FetchedTicket(**fields)


@pytest.fixture
def make_ticket():
    """Factory for FetchedTicket instances with sensible defaults."""
    return _make_ticket


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "tickets.db"


@pytest.fixture
async def store(db_path):
    async with TicketStore(db_path) as s:
        yield s
