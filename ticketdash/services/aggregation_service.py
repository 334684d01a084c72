"""AggregationService — dashboard statistics over the local ticket store."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ticketdash.dao.ticket_dao import TicketDAO
from ticketdash.store import TicketStore

TIME_SERIES_MONTHS = 12

_PRIORITY_RANK = {"Critical": 1, "High": 2, "Medium": 3, "Low": 4}
_OTHER_RANK = 5


@dataclass
class CountEntry:
    name: str
    count: int


@dataclass
class TimeSeriesEntry:
    date: str  # YYYY-MM
    created: int
    resolved: int


@dataclass
class AvgEntry:
    name: str
    avg_hours: float
    median_hours: float
    count: int


@dataclass
class SummaryStats:
    total_tickets: int
    open_tickets: int
    resolved_tickets: int
    avg_resolution_hours: float
    median_resolution_hours: float


@dataclass
class AggregationResult:
    tickets_by_status: list[CountEntry]
    tickets_by_priority: list[CountEntry]
    tickets_by_category: list[CountEntry]
    tickets_over_time: list[TimeSeriesEntry]
    resolution_time_by_priority: list[AvgEntry]
    summary: SummaryStats

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def priority_rank(name: str) -> tuple[int, str]:
    return _PRIORITY_RANK.get(name, _OTHER_RANK), name


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def mean_and_median(values: list[float]) -> tuple[float, float]:
    """Mean and lower-biased median (element ``n // 2`` of the sorted list).

    ``[1, 2, 3, 4]`` yields a median of 3, not 2.5. Empty input yields zeros.
    """
    if not values:
        return 0.0, 0.0
    ordered = sorted(values)
    return sum(ordered) / len(ordered), ordered[len(ordered) // 2]


class AggregationService:
    """Stateless service; every call recomputes from the store."""

    def __init__(self, ticket_dao: TicketDAO | None = None) -> None:
        self._ticket_dao = ticket_dao or TicketDAO()

    async def compute_aggregations(self, store: TicketStore) -> AggregationResult:
        return await store.run(self.compute)

    def compute(self, session: Session) -> AggregationResult:
        """Build the full dashboard view inside one read transaction."""
        dao = self._ticket_dao

        by_status = [CountEntry(n, c) for n, c in dao.count_by_field(session, "status")]
        by_priority = [CountEntry(n, c) for n, c in dao.count_by_field(session, "priority")]
        by_category = [CountEntry(n, c) for n, c in dao.count_by_field(session, "category")]
        over_time = [
            TimeSeriesEntry(month, created, resolved)
            for month, created, resolved in dao.monthly_counts(session, TIME_SERIES_MONTHS)
        ]

        spans = dao.list_resolution_spans(session)
        durations_by_priority: dict[str, list[float]] = defaultdict(list)
        all_durations: list[float] = []
        for priority, created_at, resolved_at in spans:
            hours = hours_between(created_at, resolved_at)
            durations_by_priority[priority].append(hours)
            all_durations.append(hours)

        resolution = []
        for priority in sorted(dao.list_priorities(session), key=priority_rank):
            durations = durations_by_priority.get(priority, [])
            avg, median = mean_and_median(durations)
            resolution.append(AvgEntry(priority, avg, median, len(durations)))

        total = dao.count(session)
        open_count = dao.count_open(session)
        avg, median = mean_and_median(all_durations)
        summary = SummaryStats(
            total_tickets=total,
            open_tickets=open_count,
            resolved_tickets=total - open_count,
            avg_resolution_hours=avg,
            median_resolution_hours=median,
        )

        return AggregationResult(
            tickets_by_status=by_status,
            tickets_by_priority=by_priority,
            tickets_by_category=by_category,
            tickets_over_time=over_time,
            resolution_time_by_priority=resolution,
            summary=summary,
        )
