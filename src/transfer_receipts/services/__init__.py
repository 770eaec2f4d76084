"""
Services layer.

Provides:
- TransferService: validated, deduplicated create/update/delete of transfers
"""

from .transfers import KeyedLocks, TransferNotFoundError, TransferService

__all__ = [
    "TransferService",
    "TransferNotFoundError",
    "KeyedLocks",
]
