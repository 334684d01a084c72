"""TicketDAO — tickets table operations."""

from datetime import datetime
from typing import Any

from sqlalchemy import and_, case, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from ticketdash.dao.base import BaseDAO, chunked
from ticketdash.models.ticket import Ticket

UNCATEGORIZED = "Uncategorized"

# Overwritten on conflict. jira_key, created_at and project_key keep the
# values from the first sync.
MUTABLE_COLUMNS = (
    "summary",
    "status",
    "priority",
    "issue_type",
    "assignee",
    "reporter",
    "updated_at",
    "resolved_at",
    "labels",
    "category",
)

_GROUPABLE = {
    "status": Ticket.status,
    "priority": Ticket.priority,
    "category": Ticket.category,
}


class TicketDAO(BaseDAO[Ticket]):
    model = Ticket

    # ── read ──────────────────────────────────────────────────────────────

    def list_tickets(
        self,
        session: Session,
        *,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
    ) -> list[Ticket]:
        """All tickets, most recently created first, optionally filtered."""
        stmt = select(Ticket)
        if status is not None:
            stmt = stmt.where(Ticket.status == status)
        if priority is not None:
            stmt = stmt.where(Ticket.priority == priority)
        if category is not None:
            if category == UNCATEGORIZED:
                stmt = stmt.where(Ticket.category.is_(None))
            else:
                stmt = stmt.where(Ticket.category == category)
        stmt = stmt.order_by(Ticket.created_at.desc(), Ticket.id.desc())
        return list(session.scalars(stmt).all())

    def count_by_field(self, session: Session, field: str) -> list[tuple[str, int]]:
        """(value, count) pairs for *field*, largest group first.

        A null category is reported as ``Uncategorized``.
        """
        column = _GROUPABLE.get(field)
        if column is None:
            raise ValueError(f"invalid group field: {field!r}")
        name = func.coalesce(column, UNCATEGORIZED).label("name")
        count = func.count().label("count")
        stmt = select(name, count).group_by(name).order_by(count.desc(), name.asc())
        return [(row.name, row.count) for row in session.execute(stmt)]

    def monthly_counts(self, session: Session, limit: int = 12) -> list[tuple[str, int, int]]:
        """(YYYY-MM, created, resolved) per creation month, ascending.

        ``resolved`` only counts tickets resolved in the same month they
        were created.
        """
        month = func.strftime("%Y-%m", Ticket.created_at).label("month")
        resolved_same_month = case(
            (
                and_(
                    Ticket.resolved_at.is_not(None),
                    func.strftime("%Y-%m", Ticket.resolved_at) == month,
                ),
                1,
            ),
            else_=0,
        )
        stmt = (
            select(
                month,
                func.count().label("created"),
                func.sum(resolved_same_month).label("resolved"),
            )
            .where(Ticket.created_at.is_not(None))
            .group_by(month)
            .order_by(month.asc())
            .limit(limit)
        )
        return [(row.month, row.created, row.resolved or 0) for row in session.execute(stmt)]

    def list_priorities(self, session: Session) -> list[str]:
        stmt = select(Ticket.priority).distinct().order_by(Ticket.priority)
        return list(session.scalars(stmt).all())

    def list_resolution_spans(self, session: Session) -> list[tuple[str, datetime, datetime]]:
        """(priority, created_at, resolved_at) for every resolved ticket."""
        stmt = select(Ticket.priority, Ticket.created_at, Ticket.resolved_at).where(
            Ticket.resolved_at.is_not(None)
        )
        return [(row.priority, row.created_at, row.resolved_at) for row in session.execute(stmt)]

    def count_open(self, session: Session) -> int:
        return self.count(session, select(Ticket.id).where(Ticket.resolved_at.is_(None)))

    # ── write ─────────────────────────────────────────────────────────────

    def upsert(self, session: Session, row: dict[str, Any]) -> None:
        """Insert or update one ticket keyed on ``jira_key``."""
        self.batch_upsert(session, [row])

    def batch_upsert(self, session: Session, rows: list[dict[str, Any]]) -> int:
        """ON CONFLICT (jira_key) DO UPDATE the mutable columns.

        Returns the number of rows written (inserted or updated).
        """
        written = 0
        for batch in chunked(rows):
            stmt = insert(Ticket).values(batch)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Ticket.jira_key],
                set_={col: stmt.excluded[col] for col in MUTABLE_COLUMNS},
            )
            session.execute(stmt)
            written += len(batch)
        return written
