"""Tests for TicketStore and its DAOs against a real SQLite file."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect, select

from ticketdash.core.database import create_sqlite_engine
from ticketdash.core.migrations import (
    SCHEMA_VERSION,
    get_schema_version,
    initialize_database,
    set_schema_version,
)
from ticketdash.dao.base import BATCH_SIZE, chunked
from ticketdash.dao.ticket_dao import TicketDAO
from ticketdash.models.ticket import Ticket
from ticketdash.services import StoreError
from ticketdash.store import TicketStore

T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


# ── TestSchema ────────────────────────────────────────────────────────────


class TestSchema:
    async def test_fresh_file_gets_current_version(self, db_path):
        async with TicketStore(db_path):
            pass
        engine = create_sqlite_engine(db_path)
        with engine.connect() as conn:
            assert get_schema_version(conn) == SCHEMA_VERSION
        tables = set(inspect(engine).get_table_names())
        assert {"tickets", "sync_metadata"} <= tables
        engine.dispose()

    async def test_indexes_created(self, db_path):
        async with TicketStore(db_path):
            pass
        engine = create_sqlite_engine(db_path)
        names = {ix["name"] for ix in inspect(engine).get_indexes("tickets")}
        engine.dispose()
        assert {
            "idx_tickets_status",
            "idx_tickets_priority",
            "idx_tickets_created",
            "idx_tickets_category",
            "idx_tickets_jira_key",
        } <= names

    async def test_reopen_keeps_data(self, db_path, make_ticket):
        async with TicketStore(db_path) as store:
            await store.upsert(make_ticket("PROJ-1"))
        async with TicketStore(db_path) as store:
            assert [t.jira_key for t in await store.get_tickets()] == ["PROJ-1"]

    def test_newer_schema_rejected(self, db_path):
        engine = create_sqlite_engine(db_path)
        with engine.begin() as conn:
            set_schema_version(conn, SCHEMA_VERSION + 1)
        with pytest.raises(StoreError, match="newer"):
            initialize_database(engine)
        engine.dispose()

    async def test_closed_store_raises(self, db_path):
        store = TicketStore(db_path)
        with pytest.raises(StoreError, match="not open"):
            await store.get_tickets()


# ── TestUpsert ────────────────────────────────────────────────────────────


class TestUpsert:
    async def test_insert_then_read(self, store, make_ticket):
        await store.upsert(make_ticket("PROJ-1", labels="a,b", assignee="Alice"))
        [ticket] = await store.get_tickets()
        assert ticket.jira_key == "PROJ-1"
        assert ticket.label_list == ["a", "b"]
        assert ticket.assignee == "Alice"
        assert ticket.created_at == T0
        assert ticket.created_at.tzinfo is not None

    async def test_idempotent(self, store, make_ticket):
        ticket = make_ticket("PROJ-1")
        await store.upsert(ticket)
        await store.upsert(ticket)
        await store.upsert_many([ticket, ticket])
        assert len(await store.get_tickets()) == 1

    async def test_mutable_fields_overwritten(self, store, make_ticket):
        await store.upsert(make_ticket("PROJ-1", status="Open", category="Old"))
        resolved = T0 + timedelta(days=2)
        await store.upsert(
            make_ticket(
                "PROJ-1",
                summary="Renamed",
                status="Done",
                priority="High",
                resolved_at=resolved,
                updated_at=resolved,
                category=None,
            )
        )
        [ticket] = await store.get_tickets()
        assert ticket.summary == "Renamed"
        assert ticket.status == "Done"
        assert ticket.priority == "High"
        assert ticket.resolved_at == resolved
        assert ticket.category is None

    async def test_created_at_and_project_preserved(self, store, make_ticket):
        await store.upsert(make_ticket("PROJ-1", created_at=T0, project_key="PROJ"))
        await store.upsert(
            make_ticket("PROJ-1", created_at=T0 + timedelta(days=30), project_key="MOVED")
        )
        [ticket] = await store.get_tickets()
        assert ticket.created_at == T0
        assert ticket.project_key == "PROJ"

    async def test_batch_larger_than_chunk(self, store, make_ticket):
        tickets = [make_ticket(f"PROJ-{i}") for i in range(BATCH_SIZE * 2 + 5)]
        written = await store.upsert_many(tickets)
        assert written == len(tickets)
        assert len(await store.get_tickets()) == len(tickets)

    async def test_concurrent_writes_serialized(self, store, make_ticket):
        await asyncio.gather(
            *(store.upsert(make_ticket(f"PROJ-{i}")) for i in range(20))
        )
        assert len(await store.get_tickets()) == 20

    def test_chunked(self):
        rows = [{"n": i} for i in range(5)]
        assert [len(c) for c in chunked(rows, 2)] == [2, 2, 1]


# ── TestGetTickets ────────────────────────────────────────────────────────


class TestGetTickets:
    async def test_newest_first(self, store, make_ticket):
        await store.upsert_many(
            [
                make_ticket("PROJ-1", created_at=T0),
                make_ticket("PROJ-2", created_at=T0 + timedelta(days=2)),
                make_ticket("PROJ-3", created_at=T0 + timedelta(days=1)),
            ]
        )
        keys = [t.jira_key for t in await store.get_tickets()]
        assert keys == ["PROJ-2", "PROJ-3", "PROJ-1"]

    async def test_filters(self, store, make_ticket):
        await store.upsert_many(
            [
                make_ticket("PROJ-1", status="Open", priority="High", category="Auth"),
                make_ticket("PROJ-2", status="Done", priority="High", category=None),
                make_ticket("PROJ-3", status="Open", priority="Low", category="Auth"),
            ]
        )
        assert {t.jira_key for t in await store.get_tickets(status="Open")} == {"PROJ-1", "PROJ-3"}
        assert {t.jira_key for t in await store.get_tickets(priority="High")} == {
            "PROJ-1",
            "PROJ-2",
        }
        assert [
            t.jira_key for t in await store.get_tickets(status="Open", priority="Low")
        ] == ["PROJ-3"]
        assert [t.jira_key for t in await store.get_tickets(category="Uncategorized")] == [
            "PROJ-2"
        ]


# ── TestSyncCursor ────────────────────────────────────────────────────────


class TestSyncCursor:
    async def test_absent_then_set(self, store):
        assert await store.get_sync_cursor("last_sync_at") is None
        await store.set_sync_cursor("last_sync_at", "2025-01-06T09:00:00+00:00")
        await store.set_sync_cursor("last_sync_at", "2025-01-07T09:00:00+00:00")
        assert await store.get_sync_cursor("last_sync_at") == "2025-01-07T09:00:00+00:00"

    async def test_save_sync_batch_writes_both(self, store, make_ticket):
        written = await store.save_sync_batch(
            [make_ticket("PROJ-1"), make_ticket("PROJ-2")], "last_sync_at", "cursor-1"
        )
        assert written == 2
        assert await store.get_sync_cursor("last_sync_at") == "cursor-1"

    async def test_save_sync_batch_is_atomic(self, store, make_ticket):
        await store.set_sync_cursor("last_sync_at", "before")
        bad = make_ticket("PROJ-2", summary=None)  # violates NOT NULL
        with pytest.raises(StoreError):
            await store.save_sync_batch(
                [make_ticket("PROJ-1"), bad], "last_sync_at", "after"
            )
        assert await store.get_sync_cursor("last_sync_at") == "before"
        assert await store.get_tickets() == []


# ── TestTicketDAO ─────────────────────────────────────────────────────────


class TestTicketDAO:
    async def test_count_by_field_rejects_unknown(self, store):
        dao = TicketDAO()
        with pytest.raises(ValueError):
            await store.run(lambda session: dao.count_by_field(session, "summary"))

    async def test_run_exposes_session(self, store, make_ticket):
        await store.upsert(make_ticket("PROJ-9"))
        keys = await store.run(lambda session: list(session.scalars(select(Ticket.jira_key))))
        assert keys == ["PROJ-9"]
