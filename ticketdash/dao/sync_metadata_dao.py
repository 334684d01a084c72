"""SyncMetadataDAO — key/value sync cursor operations."""

from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from ticketdash.dao.base import BaseDAO
from ticketdash.models.sync_metadata import SyncMetadata


class SyncMetadataDAO(BaseDAO[SyncMetadata]):
    model = SyncMetadata

    def get_value(self, session: Session, key: str) -> str | None:
        row = session.get(SyncMetadata, key)
        return row.value if row is not None else None

    def set_value(self, session: Session, key: str, value: str) -> None:
        stmt = insert(SyncMetadata).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SyncMetadata.key],
            set_={"value": stmt.excluded.value},
        )
        session.execute(stmt)
