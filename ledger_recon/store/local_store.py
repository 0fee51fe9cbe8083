"""
Local JSON-file ledger store.

Supplies ledger entries and balances to the classification engine.

Expected document:
{
    "entries": [
        {"id": 1, "companyId": 1, "date": "2025-01-05", "account": "Cash",
         "debit": 10000, "credit": 0, "party": "Investor",
         "note": "Capital Contribution", "bankAccount": "MainBank",
         "reference": "DEP001", "reconciled": true},
        ...
    ],
    "bankStatements": [
        {"companyId": 1, "bankAccount": "MainBank", "balance": 19000}
    ]
}
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from ..config import get_settings
from ..exceptions import BalanceNotFound, LedgerStoreError
from ..models import LedgerEntry, SpecialAccount, to_amount

logger = structlog.get_logger()


@dataclass
class StoredEntry:
    """A raw ledger record together with the company it belongs to."""
    company_id: Any
    record: Dict[str, Any]

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry.from_record(self.record)


@dataclass
class LedgerSnapshot:
    """Raw contents of the ledger file, keyed for lookup."""
    entries: List[StoredEntry] = field(default_factory=list)
    bank_statements: Dict[tuple, Any] = field(default_factory=dict)


def _same_company(left: Any, right: Any) -> bool:
    return str(left) == str(right)


def _sort_key(entry: LedgerEntry, by_account: bool = True) -> tuple:
    key = [entry.date or date.min]
    if by_account:
        key.append(entry.account)
    key.append(entry.reference or "")
    return tuple(key)


class LocalLedgerStore:
    """
    Ledger store backed by a local JSON file.

    The file is re-read on every call so edits are picked up without a
    restart; reads run in a worker thread. Entries are only parsed for the
    company being queried, so a malformed entry fails requests for its own
    company and leaves other companies readable.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else get_settings().ledger_file

    def validate_structure(self) -> bool:
        """Check that the ledger file exists."""
        return self.path.is_file()

    def load(self) -> LedgerSnapshot:
        """Read the ledger file; records are parsed when queried."""
        if not self.path.is_file():
            raise LedgerStoreError(f"Ledger file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LedgerStoreError(f"Could not read ledger file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise LedgerStoreError(f"Ledger file {self.path} must contain a JSON object")

        snapshot = LedgerSnapshot()

        for record in data.get("entries", []):
            if not isinstance(record, dict):
                raise LedgerStoreError(f"Ledger file {self.path} has a non-object entry: {record!r}")
            company_id = record.get("companyId", record.get("companyid"))
            snapshot.entries.append(StoredEntry(company_id=company_id, record=record))

        for record in data.get("bankStatements", []):
            if not isinstance(record, dict):
                raise LedgerStoreError(f"Ledger file {self.path} has a non-object bank statement: {record!r}")
            key = (str(record.get("companyId")), record.get("bankAccount"))
            snapshot.bank_statements[key] = record.get("balance")

        logger.debug(
            "Ledger file loaded",
            path=str(self.path),
            entries=len(snapshot.entries),
            bank_statements=len(snapshot.bank_statements),
        )
        return snapshot

    def _company_entries(self, company_id: Any) -> List[LedgerEntry]:
        return [
            stored.to_entry()
            for stored in self.load().entries
            if _same_company(stored.company_id, company_id)
        ]

    # ------------------------------------------------------------------
    # Synchronous queries
    # ------------------------------------------------------------------

    def transactions(self, company_id: Any, from_date: date, to_date: date) -> List[LedgerEntry]:
        """Cash and bank-account entries of the period, ordered by date, account, reference."""
        selected = []
        for entry in self._company_entries(company_id):
            if entry.date is None or not (from_date <= entry.date <= to_date):
                continue
            if not (entry.is_cash or (entry.has_bank_account and entry.has_movement)):
                continue
            if entry.account == SpecialAccount.SALES.value and not entry.has_bank_account:
                continue
            selected.append(entry)

        return sorted(selected, key=_sort_key)

    def opening_balance(self, company_id: Any, from_date: date) -> Decimal:
        """Sum of Cash debits minus credits strictly before the period start."""
        return sum(
            (
                entry.signed_amount
                for entry in self._company_entries(company_id)
                if entry.is_cash and entry.date is not None and entry.date < from_date
            ),
            Decimal("0"),
        )

    def ledger_balance(self, company_id: Any, bank_account: Optional[str] = None) -> Decimal:
        """Current Cash balance, restricted to one bank account when given."""
        return sum(
            (
                entry.signed_amount
                for entry in self._company_entries(company_id)
                if entry.is_cash and (not bank_account or entry.bank_account == bank_account)
            ),
            Decimal("0"),
        )

    def bank_statement_balance(self, company_id: Any, bank_account: Optional[str] = None) -> Decimal:
        """Balance reported by the bank for the account."""
        account = bank_account or get_settings().default_bank_account
        statements = self.load().bank_statements
        key = (str(company_id), account)
        if key not in statements:
            raise BalanceNotFound(
                f"No bank statement balance for company {company_id}, account {account}",
                details={"companyId": company_id, "bankAccount": account},
            )
        return to_amount(statements[key], "bank_statement_balance")

    def unreconciled_entries(self, company_id: Any, bank_account: Optional[str] = None) -> List[LedgerEntry]:
        """Unreconciled entries carrying an amount, ordered by date and reference."""
        selected = [
            entry
            for entry in self._company_entries(company_id)
            if not entry.reconciled
            and entry.has_movement
            and (not bank_account or entry.bank_account == bank_account)
        ]
        return sorted(selected, key=lambda e: _sort_key(e, by_account=False))

    # ------------------------------------------------------------------
    # Async interface used by the report service
    # ------------------------------------------------------------------

    async def get_transactions(self, company_id: Any, from_date: date, to_date: date) -> List[LedgerEntry]:
        return await asyncio.to_thread(self.transactions, company_id, from_date, to_date)

    async def get_opening_balance(self, company_id: Any, from_date: date) -> Decimal:
        return await asyncio.to_thread(self.opening_balance, company_id, from_date)

    async def get_ledger_balance(self, company_id: Any, bank_account: Optional[str] = None) -> Decimal:
        return await asyncio.to_thread(self.ledger_balance, company_id, bank_account)

    async def get_bank_statement_balance(self, company_id: Any, bank_account: Optional[str] = None) -> Decimal:
        return await asyncio.to_thread(self.bank_statement_balance, company_id, bank_account)

    async def get_unreconciled_entries(
        self,
        company_id: Any,
        bank_account: Optional[str] = None,
    ) -> List[LedgerEntry]:
        return await asyncio.to_thread(self.unreconciled_entries, company_id, bank_account)

