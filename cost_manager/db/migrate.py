"""Database migration utilities.

Handles schema evolution by applying idempotent migrations keyed by an integer
`schema_version` stored in the metadata table. Opening with a higher version
than the file has seen upgrades it in place while preserving user data;
opening with a lower one is refused.
"""

from __future__ import annotations
import logging
import sqlite3
from typing import Callable, Dict, Optional

from cost_manager.core.errors import StoreUnavailable

from . import schema as schema_def
from .schema import init_db

SCHEMA_VERSION_KEY = "schema_version"

logger = logging.getLogger("cost_manager.store")


def _get_schema_version(conn: sqlite3.Connection) -> Optional[int]:
    try:
        cur = conn.cursor()
        cur.execute("SELECT value FROM metadata WHERE key=?", (SCHEMA_VERSION_KEY,))
        row = cur.fetchone()
        if row:
            return int(row[0])
    except sqlite3.OperationalError:
        # metadata table may not exist yet (first run before init_db)
        return None
    return None


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO metadata (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
        f"updated_at=({schema_def.BASIC_UTC_NOW})",
        (SCHEMA_VERSION_KEY, str(version)),
    )


def _migrate_to_v2(conn: sqlite3.Connection) -> None:
    """Upgrade schema to version 2 (year/month lookup index)."""
    conn.execute(schema_def.COSTS_YEAR_MONTH_INDEX_DDL)


MIGRATIONS: Dict[int, Callable[[sqlite3.Connection], None]] = {
    2: _migrate_to_v2,
}


def apply_migrations(conn: sqlite3.Connection, target_version: int) -> int:
    """Ensure the schema exists at `target_version` and return it.

    Versions above the highest registered migration only ensure the base
    tables exist and record the new number.
    """
    if target_version < 1:
        raise StoreUnavailable(f"invalid schema version {target_version}")
    try:
        init_db(conn)
        current = _get_schema_version(conn) or 0
        if target_version < current:
            raise StoreUnavailable(
                f"requested schema version {target_version} is older than stored version {current}"
            )
        for version in sorted(MIGRATIONS):
            if current < version <= target_version:
                logger.info("applying schema migration to v%s", version)
                MIGRATIONS[version](conn)
        if target_version != current:
            _set_schema_version(conn, target_version)
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise StoreUnavailable(f"failed to prepare store schema: {exc}") from exc
    return target_version
