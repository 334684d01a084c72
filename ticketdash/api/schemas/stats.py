"""Dashboard stats response schemas."""

from __future__ import annotations

from pydantic import BaseModel


class CountItem(BaseModel):
    name: str
    count: int


class TimeSeriesItem(BaseModel):
    date: str
    created: int
    resolved: int


class ResolutionItem(BaseModel):
    name: str
    avg_hours: float
    median_hours: float
    count: int


class SummaryItem(BaseModel):
    total_tickets: int
    open_tickets: int
    resolved_tickets: int
    avg_resolution_hours: float
    median_resolution_hours: float


class DashboardResponse(BaseModel):
    tickets_by_status: list[CountItem]
    tickets_by_priority: list[CountItem]
    tickets_by_category: list[CountItem]
    tickets_over_time: list[TimeSeriesItem]
    resolution_time_by_priority: list[ResolutionItem]
    summary: SummaryItem
