"""Database schema DDL definitions and initialization utilities.

Tables:
  - costs: individual cost records, keyed by an auto-assigned id that is
    never reused (AUTOINCREMENT)
  - metadata: key/value store (schema version, exchange rate source URL)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
COSTS_TABLE = "costs"

COSTS_DDL = f"""
CREATE TABLE IF NOT EXISTS {COSTS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    amount REAL NOT NULL CHECK (amount > 0),
    currency TEXT NOT NULL, -- 'USD' | 'ILS' | 'GBP' | 'EUR'
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    created_at TEXT NOT NULL, -- ISO timestamp with UTC offset
    month INTEGER NOT NULL, -- 1..12, derived from created_at
    year INTEGER NOT NULL -- derived from created_at
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

COSTS_YEAR_MONTH_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_costs_year_month ON costs(year, month);"
)

DDL_ORDER: Sequence[str] = (
    COSTS_DDL,
    METADATA_DDL,
)


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables idempotently on an open connection.

    Existing tables and rows are left untouched.
    """
    cur = conn.cursor()
    for ddl in DDL_ORDER:
        cur.execute(ddl)
