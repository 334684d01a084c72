"""Ticket fetcher engine — Jira issue retrieval without DB access."""

from ticketdash.engines.ticket_fetcher.jira_client import (
    ApiError,
    FetchError,
    JiraClient,
    PaginationError,
    ParseError,
    RateLimitError,
    TransportError,
    UnauthorizedError,
)
from ticketdash.engines.ticket_fetcher.models import FetchedTicket

__all__ = [
    "ApiError",
    "FetchError",
    "FetchedTicket",
    "JiraClient",
    "PaginationError",
    "ParseError",
    "RateLimitError",
    "TransportError",
    "UnauthorizedError",
]
