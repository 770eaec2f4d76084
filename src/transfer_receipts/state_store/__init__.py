"""
State Store (SQLite-based).

Persists transfer records and enforces UNIQUE(bank, operation_number).
"""

from .sqlite_store import TransferStore, now_timestamp, record_from_row

__all__ = [
    "TransferStore",
    "record_from_row",
    "now_timestamp",
]
