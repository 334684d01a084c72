"""Tests for the business-hours primitive."""

from __future__ import annotations

from datetime import datetime

import pytest

from ticketdash.services import ValidationError
from ticketdash.services.time_calc import business_hours_between

# 2025-01-06 is a Monday.


def test_same_day():
    assert business_hours_between(datetime(2025, 1, 6, 10), datetime(2025, 1, 6, 15), 9, 17) == 5.0


def test_multi_day():
    start = datetime(2025, 1, 6, 16)  # Mon 16:00
    end = datetime(2025, 1, 8, 10, 30)  # Wed 10:30
    assert business_hours_between(start, end, 9, 17) == 10.5


def test_weekend_excluded():
    start = datetime(2025, 1, 10, 16)  # Fri 16:00
    end = datetime(2025, 1, 13, 10)  # Mon 10:00
    assert business_hours_between(start, end, 9, 17) == 2.0


def test_reversed_is_zero():
    assert business_hours_between(datetime(2025, 1, 6, 15), datetime(2025, 1, 6, 10), 9, 17) == 0.0


def test_outside_window_clamped():
    start = datetime(2025, 1, 6, 6)
    end = datetime(2025, 1, 6, 20)
    assert business_hours_between(start, end, 9, 17) == 8.0


def test_entirely_on_weekend():
    assert business_hours_between(datetime(2025, 1, 11, 9), datetime(2025, 1, 12, 17), 9, 17) == 0.0


@pytest.mark.parametrize("work_start,work_end", [(25, 17), (9, 24), (-1, 17), (17, 9), (9, 9)])
def test_invalid_work_hours(work_start, work_end):
    with pytest.raises(ValidationError):
        business_hours_between(datetime(2025, 1, 6, 10), datetime(2025, 1, 6, 15), work_start, work_end)
