"""SQLAlchemy ORM models — one file per table."""

from ticketdash.models.sync_metadata import SyncMetadata
from ticketdash.models.ticket import Ticket

__all__ = [
    "SyncMetadata",
    "Ticket",
]
