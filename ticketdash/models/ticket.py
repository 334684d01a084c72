"""tickets table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from ticketdash.core.database import Base, UTCDateTime


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    jira_key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(Text, nullable=False)
    issue_type: Mapped[str] = mapped_column(Text, nullable=False)
    assignee: Mapped[Optional[str]] = mapped_column(Text)
    reporter: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    labels: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    project_key: Mapped[str] = mapped_column(Text, nullable=False)

    # computed locally on every sync, never taken from the remote
    category: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("idx_tickets_status", "status"),
        Index("idx_tickets_priority", "priority"),
        Index("idx_tickets_created", "created_at"),
        Index("idx_tickets_category", "category"),
        Index("idx_tickets_jira_key", "jira_key"),
    )

    @property
    def label_list(self) -> list[str]:
        return [label for label in self.labels.split(",") if label]
