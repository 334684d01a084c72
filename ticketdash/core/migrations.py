"""Schema versioning for the local ticket store.

The version lives in SQLite's ``PRAGMA user_version``. A fresh file (version
0) gets the full schema; older files are walked forward one version at a
time. Migration steps must be additive: existing rows are never rewritten or
dropped.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy import Connection, Engine

from ticketdash.core.database import Base
from ticketdash.services import StoreError

log = structlog.get_logger(__name__)

SCHEMA_VERSION = 1

# target version -> step that upgrades from (target - 1)
MIGRATIONS: dict[int, Callable[[Connection], None]] = {}


def initialize_database(engine: Engine) -> int:
    """Create or upgrade the schema. Returns the resulting version."""
    # Import models so their tables are registered on Base.metadata.
    import ticketdash.models  # noqa: F401

    with engine.begin() as conn:
        current = get_schema_version(conn)
        if current == 0:
            Base.metadata.create_all(conn)
            set_schema_version(conn, SCHEMA_VERSION)
            log.info("store.schema_created", version=SCHEMA_VERSION)
        elif current < SCHEMA_VERSION:
            migrate_schema(conn, current)
        elif current > SCHEMA_VERSION:
            raise StoreError(
                f"database schema version {current} is newer than supported "
                f"version {SCHEMA_VERSION}"
            )
    return SCHEMA_VERSION


def get_schema_version(conn: Connection) -> int:
    return int(conn.exec_driver_sql("PRAGMA user_version").scalar_one())


def set_schema_version(conn: Connection, version: int) -> None:
    conn.exec_driver_sql(f"PRAGMA user_version = {int(version)}")


def migrate_schema(conn: Connection, from_version: int) -> None:
    """Apply forward-only migration steps from *from_version* to current."""
    for target in range(from_version + 1, SCHEMA_VERSION + 1):
        step = MIGRATIONS.get(target)
        if step is not None:
            step(conn)
        set_schema_version(conn, target)
        log.info("store.schema_migrated", from_version=target - 1, to_version=target)
