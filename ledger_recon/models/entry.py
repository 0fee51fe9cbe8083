"""Ledger entry model consumed by the classification engine."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import InvalidInput
from .enums import SpecialAccount


Amount = Union[Decimal, int, float, str]

ZERO = Decimal("0")

# Largest magnitude accepted for any amount or balance
MAX_AMOUNT = Decimal("1e15")

# Record keys accepted by LedgerEntry.from_record (API/camelCase and SQL/lowercase forms)
_RECORD_ALIASES: Dict[str, tuple] = {
    "id": ("id",),
    "date": ("date",),
    "account": ("account",),
    "debit": ("debit",),
    "credit": ("credit",),
    "party": ("party",),
    "note": ("note",),
    "bank_account": ("bank_account", "bankAccount", "bankaccount"),
    "reference": ("reference",),
    "reconciled": ("reconciled",),
}


def to_amount(
    value: Any,
    field: str,
    entry_id: Any = None,
    allow_negative: bool = True,
) -> Decimal:
    """
    Read a monetary value as a Decimal.

    Floats go through their shortest repr so that 0.1 stays 0.1.
    Raises InvalidInput for missing, non-numeric, non-finite or out-of-range
    (MAX_AMOUNT or more in magnitude) values.
    """
    where = f"entry {entry_id}" if entry_id is not None else "input"

    if value is None:
        raise InvalidInput(f"Missing {field} in {where}", entry_id=entry_id, field=field)
    if isinstance(value, bool):
        raise InvalidInput(f"Non-numeric {field} in {where}: {value!r}", entry_id=entry_id, field=field)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInput(f"Non-finite {field} in {where}: {value!r}", entry_id=entry_id, field=field)
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidInput(
                f"Non-numeric {field} in {where}: {value!r}", entry_id=entry_id, field=field
            ) from None
    else:
        raise InvalidInput(f"Non-numeric {field} in {where}: {value!r}", entry_id=entry_id, field=field)

    if not amount.is_finite():
        raise InvalidInput(f"Non-finite {field} in {where}: {value!r}", entry_id=entry_id, field=field)
    if abs(amount) >= MAX_AMOUNT:
        raise InvalidInput(f"Out-of-range {field} in {where}: {value!r}", entry_id=entry_id, field=field)
    if not allow_negative and amount < 0:
        raise InvalidInput(f"Negative {field} in {where}: {value!r}", entry_id=entry_id, field=field)

    return amount


def _to_date(value: Any, entry_id: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise InvalidInput(f"Invalid date in entry {entry_id}: {value!r}", entry_id=entry_id, field="date")


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class LedgerEntry:
    """
    One leg of a double-entry ledger transaction.

    Debit and credit are normalized to non-negative Decimals on construction.
    Blank optional strings are stored as None, so an empty bank account
    counts as no bank account.
    """
    id: Any = None
    date: Optional[date] = None
    account: str = ""
    debit: Amount = ZERO
    credit: Amount = ZERO
    party: Optional[str] = None
    note: Optional[str] = None
    bank_account: Optional[str] = None
    reference: Optional[str] = None
    reconciled: bool = False

    def __post_init__(self):
        set_ = object.__setattr__
        set_(self, "debit", to_amount(self.debit, "debit", self.id, allow_negative=False))
        set_(self, "credit", to_amount(self.credit, "credit", self.id, allow_negative=False))
        set_(self, "date", _to_date(self.date, self.id))
        set_(self, "account", "" if self.account is None else str(self.account))
        set_(self, "party", _to_text(self.party))
        set_(self, "note", _to_text(self.note))
        set_(self, "bank_account", _to_text(self.bank_account))
        set_(self, "reference", _to_text(self.reference))
        set_(self, "reconciled", bool(self.reconciled))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LedgerEntry":
        """Build an entry from a store row or API payload."""
        kwargs = {}
        for name, keys in _RECORD_ALIASES.items():
            for key in keys:
                if key in record:
                    kwargs[name] = record[key]
                    break

        # Required amounts must be present; absent keys are not read as zero
        for name in ("debit", "credit"):
            kwargs.setdefault(name, None)

        return cls(**kwargs)

    @classmethod
    def coerce(cls, value: Union["LedgerEntry", Mapping[str, Any]]) -> "LedgerEntry":
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_record(value)
        raise InvalidInput(f"Unsupported ledger entry type: {type(value).__name__}")

    @property
    def is_cash(self) -> bool:
        return self.account == SpecialAccount.CASH.value

    @property
    def has_bank_account(self) -> bool:
        return self.bank_account is not None

    @property
    def has_movement(self) -> bool:
        """Check if either leg carries an amount."""
        return self.debit > 0 or self.credit > 0

    @property
    def signed_amount(self) -> Decimal:
        """Net signed amount: positive = debit side, negative = credit side."""
        return self.debit - self.credit

    def note_contains(self, *words: str) -> bool:
        """Case-insensitive substring match against the note."""
        return _contains_any(self.note, words)

    def party_contains(self, *words: str) -> bool:
        """Case-insensitive substring match against the party."""
        return _contains_any(self.party, words)

    def account_contains(self, *words: str) -> bool:
        """Case-insensitive substring match against the account name."""
        return _contains_any(self.account, words)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "account": self.account,
            "debit": float(self.debit),
            "credit": float(self.credit),
            "party": self.party,
            "note": self.note,
            "bankAccount": self.bank_account,
            "reference": self.reference,
            "reconciled": self.reconciled,
        }


def _contains_any(text: Optional[str], words) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(word.lower() in lowered for word in words)
