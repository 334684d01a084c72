"""TicketStore — the local SQLite store behind an async facade.

All SQLAlchemy work is synchronous. Every call is dispatched to a dedicated
single-worker executor and serialized through one exclusive lock, so the sync
writer and dashboard readers never share the handle concurrently. Exceptions
raised in the worker propagate to the awaiting coroutine.
"""

from __future__ import annotations

import asyncio
import functools
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, TypeVar

import structlog
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ticketdash.core.database import create_session_factory, create_sqlite_engine
from ticketdash.core.migrations import initialize_database
from ticketdash.dao.sync_metadata_dao import SyncMetadataDAO
from ticketdash.dao.ticket_dao import TicketDAO
from ticketdash.engines.ticket_fetcher.models import FetchedTicket
from ticketdash.models.ticket import Ticket
from ticketdash.services import StoreError

log = structlog.get_logger(__name__)

T = TypeVar("T")


class TicketStore:
    """Idempotent ticket persistence plus the key/value sync cursor table."""

    def __init__(
        self,
        path: str | Path,
        *,
        ticket_dao: TicketDAO | None = None,
        metadata_dao: SyncMetadataDAO | None = None,
    ) -> None:
        self.path = path
        self._ticket_dao = ticket_dao or TicketDAO()
        self._metadata_dao = metadata_dao or SyncMetadataDAO()
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def open(self) -> None:
        """Create or migrate the schema. Safe to call on an existing file."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="ticketdash-store"
            )
        await self._offload(self._open_sync)

    async def close(self) -> None:
        if self._executor is None:
            return
        await self._offload(self._close_sync)
        self._executor.shutdown(wait=True)
        self._executor = None

    async def __aenter__(self) -> TicketStore:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    # ── tickets ────────────────────────────────────────────────────────────

    async def upsert(self, ticket: FetchedTicket) -> None:
        """Insert or overwrite one ticket keyed on its natural key."""
        row = ticket.to_row()
        await self.run(lambda session: self._ticket_dao.upsert(session, row))

    async def upsert_many(self, tickets: Sequence[FetchedTicket]) -> int:
        rows = [t.to_row() for t in tickets]
        return await self.run(lambda session: self._ticket_dao.batch_upsert(session, rows))

    async def get_tickets(
        self,
        *,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
    ) -> list[Ticket]:
        """Stored tickets, most recently created first."""
        return await self.run(
            lambda session: self._ticket_dao.list_tickets(
                session, status=status, priority=priority, category=category
            )
        )

    # ── sync cursor ────────────────────────────────────────────────────────

    async def get_sync_cursor(self, key: str) -> str | None:
        return await self.run(lambda session: self._metadata_dao.get_value(session, key))

    async def set_sync_cursor(self, key: str, value: str) -> None:
        await self.run(lambda session: self._metadata_dao.set_value(session, key, value))

    async def save_sync_batch(
        self, tickets: Sequence[FetchedTicket], cursor_key: str, cursor_value: str
    ) -> int:
        """Upsert every ticket, then advance the cursor, in one transaction.

        If any upsert fails nothing is committed and the cursor keeps its
        previous value.
        """
        rows = [t.to_row() for t in tickets]

        def _save(session: Session) -> int:
            written = self._ticket_dao.batch_upsert(session, rows)
            self._metadata_dao.set_value(session, cursor_key, cursor_value)
            return written

        return await self.run(_save)

    # ── generic offload ────────────────────────────────────────────────────

    async def run(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn(session)`` inside a transaction on the store worker."""
        return await self._offload(self._run_in_session, fn)

    def _run_in_session(self, fn: Callable[[Session], T]) -> T:
        with self._lock:
            if self._session_factory is None:
                raise StoreError("store is not open")
            try:
                with self._session_factory() as session:
                    with session.begin():
                        return fn(session)
            except SQLAlchemyError as exc:
                log.error("store.operation_failed", error=str(exc))
                raise StoreError(f"database error: {exc}") from exc

    async def _offload(self, fn: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            raise StoreError("store is not open")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def _open_sync(self) -> None:
        with self._lock:
            if self._engine is not None:
                return
            try:
                engine = create_sqlite_engine(self.path)
                version = initialize_database(engine)
            except SQLAlchemyError as exc:
                raise StoreError(f"failed to open database at {self.path}: {exc}") from exc
            self._engine = engine
            self._session_factory = create_session_factory(engine)
            log.info("store.opened", path=str(self.path), schema_version=version)

    def _close_sync(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._session_factory = None
