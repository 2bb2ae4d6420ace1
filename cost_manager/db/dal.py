"""Data Access Layer for cost records.

Responsibilities
----------------
- Open the SQLite file behind an explicit `Database` handle, creating or
  upgrading the `costs` table on the way (see `migrate.apply_migrations`).
- Insert, delete and scan cost records. Every call uses its own connection
  and transaction, so report scans never block inserts.
- Stamp `created_at` and derive `month`/`year` from it in a single step inside
  the insert path; nothing else writes those columns.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from pathlib import Path
import sqlite3
from typing import Callable, Iterator, List, Optional, Tuple

from cost_manager.core.errors import StoreUnavailable
from cost_manager.models import StoredCost
from cost_manager.services.cost_validation import CostInput, validate_cost_input

from .migrate import apply_migrations

Clock = Callable[[], datetime]

logger = logging.getLogger("cost_manager.store")


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _stamp(created_at: datetime) -> Tuple[datetime, int, int]:
    """Return (aware timestamp, month, year) for a new record."""
    if created_at.tzinfo is None:
        created_at = created_at.astimezone()
    return created_at, created_at.month, created_at.year


def _row_to_cost(row: sqlite3.Row) -> StoredCost:
    return StoredCost(
        id=row["id"],
        amount=row["amount"],
        currency=row["currency"],
        category=row["category"],
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
        month=row["month"],
        year=row["year"],
    )


class Database:
    def __init__(self, db_path: Path, clock: Optional[Clock] = None):
        self.db_path = Path(db_path)
        self.schema_version: Optional[int] = None
        self._clock: Clock = clock or _local_now
        self._open = False

    # ------------------------------------------------------------------
    # Lifecycle
    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, schema_version: int) -> "Database":
        """Ensure the schema exists at `schema_version`; idempotent."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreUnavailable(
                f"cannot open store at {self.db_path}: {exc}"
            ) from exc
        try:
            self.schema_version = apply_migrations(conn, schema_version)
        finally:
            conn.close()
        self._open = True
        logger.info(
            "store opened at %s (schema v%s)", self.db_path, self.schema_version
        )
        return self

    def close(self) -> None:
        self._open = False

    # ------------------------------------------------------------------
    # Connection helpers
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if not self._open:
            raise StoreUnavailable("store is not open")
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"cannot connect to {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.DatabaseError as exc:
            conn.rollback()
            raise StoreUnavailable(f"store operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Cost CRUD
    def insert_cost(self, entry: CostInput) -> StoredCost:
        if not self._open:
            raise StoreUnavailable("store is not open")
        cost = validate_cost_input(entry)
        created_at, month, year = _stamp(self._clock())
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO costs (
                    amount, currency, category, description, created_at, month, year
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    cost.amount,
                    cost.currency,
                    cost.category,
                    cost.description,
                    created_at.isoformat(),
                    month,
                    year,
                ),
            )
            cost_id = int(cur.lastrowid)
        logger.info("cost inserted", extra={"cost_id": cost_id})
        return StoredCost(
            id=cost_id,
            amount=cost.amount,
            currency=cost.currency,
            category=cost.category,
            description=cost.description,
            created_at=created_at,
            month=month,
            year=year,
        )

    def get_cost(self, cost_id: int) -> Optional[StoredCost]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM costs WHERE id = ?", (cost_id,))
            row = cur.fetchone()
            return _row_to_cost(row) if row else None

    def delete_cost(self, cost_id: int) -> bool:
        """Delete a cost; deleting an unknown id is a successful no-op."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM costs WHERE id = ?", (cost_id,))
            removed = cur.rowcount
        if removed:
            logger.info("cost deleted", extra={"cost_id": cost_id})
        else:
            logger.debug("delete of unknown cost ignored", extra={"cost_id": cost_id})
        return True

    # ------------------------------------------------------------------
    # Scans
    def scan_all(self) -> List[StoredCost]:
        """Every stored cost. Callers impose their own ordering."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM costs")
            return [_row_to_cost(r) for r in cur.fetchall()]

    def scan_by_year(self, year: int) -> List[StoredCost]:
        return [c for c in self.scan_all() if c.year == year]

    def scan_by_year_month(self, year: int, month: int) -> List[StoredCost]:
        return [c for c in self.scan_all() if c.year == year and c.month == month]

    def list_costs_newest_first(self) -> List[StoredCost]:
        return sorted(
            self.scan_all(), key=lambda c: (c.created_at, c.id), reverse=True
        )

    # ------------------------------------------------------------------
    # Metadata (settings surface)
    def get_metadata(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM metadata WHERE key = ?", (key,))
            row = cur.fetchone()
            return row[0] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO metadata(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
                "updated_at=(strftime('%Y-%m-%dT%H:%M:%fZ','now'))",
                (key, value),
            )

    def delete_metadata(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM metadata WHERE key = ?", (key,))


def open_database(
    db_path: Path, schema_version: int, clock: Optional[Clock] = None
) -> Database:
    """Open (creating if needed) the cost store and return its handle."""
    return Database(db_path, clock=clock).open(schema_version)


__all__ = ["Database", "open_database"]
