"""Business-hours arithmetic (Mon–Fri, fixed daily window)."""

from __future__ import annotations

from datetime import datetime, time, timedelta

from ticketdash.services import ValidationError

_SATURDAY = 5


def business_hours_between(
    start: datetime,
    end: datetime,
    work_start_hour: int,
    work_end_hour: int,
) -> float:
    """Working hours between *start* and *end*, skipping weekends.

    Each weekday contributes the overlap of ``[work_start_hour, work_end_hour)``
    with the span, counted in whole minutes. Returns 0.0 when *end* is not
    after *start*.

    Raises :class:`ValidationError` if either hour is outside 0–23 or the
    window is empty.
    """
    if not (0 <= work_start_hour <= 23 and 0 <= work_end_hour <= 23):
        raise ValidationError(
            f"invalid work hours: start={work_start_hour}, end={work_end_hour} (must be 0-23)"
        )
    if work_start_hour >= work_end_hour:
        raise ValidationError(
            f"work start hour ({work_start_hour}) must be less than work end hour ({work_end_hour})"
        )
    if end <= start:
        return 0.0

    work_start = time(work_start_hour)
    work_end = time(work_end_hour)
    total_minutes = 0

    day = start.date()
    last_day = end.date()
    while day <= last_day:
        if day.weekday() < _SATURDAY:
            day_start = max(start.time(), work_start) if day == start.date() else work_start
            day_end = min(end.time(), work_end) if day == last_day else work_end
            if day_end > day_start:
                span = datetime.combine(day, day_end) - datetime.combine(day, day_start)
                total_minutes += int(span.total_seconds() // 60)
        day += timedelta(days=1)

    return total_minutes / 60.0
