"""sync_metadata table — generic key/value store for sync cursors."""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from ticketdash.core.database import Base


class SyncMetadata(Base):
    __tablename__ = "sync_metadata"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
