"""Exceptions raised by the ledger classification engine and its store."""

from typing import Any, Optional


class LedgerEngineError(Exception):
    """Base exception for ledger engine errors."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(LedgerEngineError):
    """
    A ledger entry or balance could not be read as a valid amount.

    The whole classification run fails; no partial statement is produced.
    """
    def __init__(
        self,
        message: str,
        entry_id: Optional[str] = None,
        field: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message, details)
        self.entry_id = entry_id
        self.field = field


class LedgerStoreError(LedgerEngineError):
    """The ledger store could not be read."""


class BalanceNotFound(LedgerStoreError):
    """No bank statement balance is recorded for the requested account."""
