"""
CLI runner module.

Provides commands:
- parse: Print the fields found in a receipt
- ingest: Parse a receipt and save the transfer
- submit: Save an edited transfer form
- list / delete / mark-exported / status: Manage saved transfers
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
