"""Ledger store implementations."""

from .local_store import LocalLedgerStore

__all__ = ["LocalLedgerStore"]
