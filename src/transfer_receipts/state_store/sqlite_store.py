"""
SQLite-based transfer store.

Tables:
- schema_version: Schema version tracking
- transfers: One row per bank transfer, UNIQUE(bank, operation_number)

SQLite treats NULLs as distinct in unique indexes, so any number of
transfers without an operation number can coexist.
"""

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from ..schemas.transfer import TransferRecord

_COLUMNS = (
    "id",
    "date",
    "time",
    "bank",
    "operation_number",
    "beneficiary",
    "destination_account_suffix",
    "amount",
    "extras",
    "created_at",
    "updated_at",
    "exported_at",
)


def now_timestamp() -> str:
    """Current local time, ISO 8601 with UTC offset and seconds precision."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def record_from_row(row: sqlite3.Row) -> TransferRecord:
    """Create a TransferRecord from a database row."""
    return TransferRecord(
        id=row["id"],
        date=row["date"],
        time=row["time"],
        bank=row["bank"],
        operation_number=row["operation_number"],
        beneficiary=row["beneficiary"],
        destination_account_suffix=row["destination_account_suffix"],
        amount=row["amount"],
        extras=json.loads(row["extras"]) if row["extras"] else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        exported_at=row["exported_at"],
    )


class TransferStore:
    """
    SQLite persistence for transfer records.

    Each call opens its own connection, so the store may be used from
    several threads. Read-then-write sequences (deduplication) must be
    serialized by the caller; see TransferService.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str):
        """
        Initialize the store, creating the database if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._changed = threading.Condition()
        self._version = 0
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS transfers (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,                -- YYYY-MM-DD
                    time TEXT NOT NULL,                -- HH:MM
                    bank TEXT NOT NULL,
                    operation_number TEXT,
                    beneficiary TEXT NOT NULL,
                    destination_account_suffix TEXT NOT NULL,
                    amount TEXT NOT NULL,              -- "PEN 921.88"
                    extras TEXT,                       -- JSON object
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    exported_at TEXT
                )
            """
            )

            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_transfers_bank_operation
                ON transfers(bank, operation_number)
            """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_transfers_fallback
                ON transfers(date, amount, destination_account_suffix)
            """
            )

            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    def _notify(self) -> None:
        with self._changed:
            self._version += 1
            self._changed.notify_all()

    # Lookups

    def get_by_id(self, transfer_id: str) -> TransferRecord | None:
        """Get a transfer by id."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM transfers WHERE id = ?", (transfer_id,)).fetchone()
            return record_from_row(row) if row else None

    def find_by_bank_and_operation(
        self, bank: str, operation_number: str | None
    ) -> TransferRecord | None:
        """Primary dedupe lookup: same bank and operation number."""
        if operation_number is None:
            return None
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM transfers WHERE bank = ? AND operation_number = ? LIMIT 1",
                (bank, operation_number),
            ).fetchone()
            return record_from_row(row) if row else None

    def find_possible_duplicate(
        self,
        date: str,
        amount: str,
        destination_account_suffix: str,
        exclude_id: str | None = None,
    ) -> TransferRecord | None:
        """
        Fallback dedupe lookup: same date, amount and destination suffix.

        The latest by time wins when several match. exclude_id keeps a
        record from matching itself while it is being edited.
        """
        query = """
            SELECT * FROM transfers
            WHERE date = ? AND amount = ? AND destination_account_suffix = ?
        """
        params: list[Any] = [date, amount, destination_account_suffix]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        query += " ORDER BY time DESC, updated_at DESC LIMIT 1"

        with self._transaction() as conn:
            row = conn.execute(query, params).fetchone()
            return record_from_row(row) if row else None

    def list_all(self) -> list[TransferRecord]:
        """All transfers, newest first."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM transfers ORDER BY date DESC, time DESC").fetchall()
            return [record_from_row(row) for row in rows]

    def list_all_stream(self, timeout: float | None = None) -> Iterator[list[TransferRecord]]:
        """
        Live list: yields list_all() now and again after each write.

        Only writes made through this store object are observed. The
        generator ends when no write arrives within timeout seconds
        (None waits indefinitely).
        """
        with self._changed:
            seen = self._version
        yield self.list_all()

        while True:
            with self._changed:
                changed = self._changed.wait_for(lambda: self._version != seen, timeout=timeout)
                if not changed:
                    return
                seen = self._version
            yield self.list_all()

    def search(self, query: str) -> list[TransferRecord]:
        """Substring search on beneficiary, bank, amount and operation number."""
        pattern = f"%{query.strip()}%"
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM transfers
                WHERE beneficiary LIKE ? OR bank LIKE ? OR amount LIKE ?
                    OR IFNULL(operation_number, '') LIKE ?
                ORDER BY date DESC, time DESC
            """,
                (pattern, pattern, pattern, pattern),
            ).fetchall()
            return [record_from_row(row) for row in rows]

    def select_for_export(
        self,
        pending_only: bool = True,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[TransferRecord]:
        """
        Transfers to export.

        Args:
            pending_only: Only transfers never exported
            date_from: Inclusive lower date bound (YYYY-MM-DD)
            date_to: Inclusive upper date bound (YYYY-MM-DD)
        """
        clauses: list[str] = []
        params: list[Any] = []
        if pending_only:
            clauses.append("exported_at IS NULL")
        if date_from:
            clauses.append("date >= ?")
            params.append(date_from)
        if date_to:
            clauses.append("date <= ?")
            params.append(date_to)

        query = "SELECT * FROM transfers"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY date DESC, time DESC"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [record_from_row(row) for row in rows]

    # Writes

    def _write(self, conn: sqlite3.Connection, record: TransferRecord) -> None:
        values = record.to_dict()
        values["extras"] = json.dumps(record.extras) if record.extras else None
        assignments = ", ".join(f"{col} = excluded.{col}" for col in _COLUMNS if col != "id")
        conn.execute(
            f"""
            INSERT INTO transfers ({", ".join(_COLUMNS)})
            VALUES ({", ".join("?" for _ in _COLUMNS)})
            ON CONFLICT(id) DO UPDATE SET {assignments}
        """,
            [values[col] for col in _COLUMNS],
        )

    def upsert(self, record: TransferRecord) -> None:
        """Insert a transfer or overwrite the row with the same id."""
        with self._transaction() as conn:
            self._write(conn, record)
        self._notify()

    def merge(self, record: TransferRecord, merged_id: str) -> None:
        """
        Write record and delete merged_id in one transaction.

        Used when an edited transfer turns out to duplicate another one: the
        edited row goes away so its (bank, operation_number) pair is free
        for the surviving row.
        """
        with self._transaction() as conn:
            if merged_id != record.id:
                conn.execute("DELETE FROM transfers WHERE id = ?", (merged_id,))
            self._write(conn, record)
        self._notify()

    def delete(self, transfer_id: str) -> bool:
        """Delete a transfer. Returns False when the id does not exist."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM transfers WHERE id = ?", (transfer_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            self._notify()
        return deleted

    def mark_exported(self, transfer_ids: Iterable[str], when: Optional[str] = None) -> int:
        """Stamp exported_at (and updated_at). Returns the number of rows touched."""
        ids = list(transfer_ids)
        if not ids:
            return 0
        now = when or now_timestamp()
        with self._transaction() as conn:
            cursor = conn.executemany(
                "UPDATE transfers SET exported_at = ?, updated_at = ? WHERE id = ?",
                [(now, now, transfer_id) for transfer_id in ids],
            )
            touched = cursor.rowcount
        self._notify()
        return touched

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        with self._transaction() as conn:
            total = conn.execute("SELECT COUNT(*) as count FROM transfers").fetchone()
            exported = conn.execute(
                "SELECT COUNT(*) as count FROM transfers WHERE exported_at IS NOT NULL"
            ).fetchone()
            without_operation = conn.execute(
                "SELECT COUNT(*) as count FROM transfers WHERE operation_number IS NULL"
            ).fetchone()
            banks = conn.execute(
                "SELECT bank, COUNT(*) as count FROM transfers GROUP BY bank ORDER BY bank"
            ).fetchall()

            return {
                "transfers_total": total["count"] if total else 0,
                "transfers_exported": exported["count"] if exported else 0,
                "transfers_pending_export": (total["count"] - exported["count"]) if total else 0,
                "transfers_without_operation": (
                    without_operation["count"] if without_operation else 0
                ),
                "by_bank": {row["bank"]: row["count"] for row in banks},
            }
