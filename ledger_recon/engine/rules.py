"""
Rule primitives shared by the classifiers.

Classification rules are kept as ordered lists of named (predicate, outcome)
pairs evaluated top-down; the first predicate that holds decides the outcome.
Account tables are injected so deployments and tests can override them.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Callable, FrozenSet, Iterable, Optional, Sequence

from ..config import Settings, get_settings
from ..models import LedgerEntry

DEFAULT_RULE = "default"

CENT = Decimal("0.01")

# Enough digits to quantize any sum of in-range amounts to cents
MONEY_PRECISION = 40


@dataclass(frozen=True)
class Rule:
    """A named classification rule."""
    name: str
    predicate: Callable[[LedgerEntry], bool]
    outcome: Any
    description: str = ""

    def matches(self, entry: LedgerEntry) -> bool:
        return bool(self.predicate(entry))


def first_match(rules: Sequence[Rule], entry: LedgerEntry) -> Optional[Rule]:
    """Return the first rule whose predicate holds for the entry."""
    for rule in rules:
        if rule.matches(entry):
            return rule
    return None


@dataclass(frozen=True)
class AccountTables:
    """
    Named account sets used by the classification rules.

    operating/investing/financing: cash-flow category lookup for non-Cash accounts
    liabilities: pure-liability accounts, never part of the cash-flow statement
    bank_fees: accounts that always denote bank-initiated charges
    """
    operating: FrozenSet[str]
    investing: FrozenSet[str]
    financing: FrozenSet[str]
    liabilities: FrozenSet[str]
    bank_fees: FrozenSet[str]

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AccountTables":
        settings = settings or get_settings()
        return cls(
            operating=frozenset(settings.operating_accounts),
            investing=frozenset(settings.investing_accounts),
            financing=frozenset(settings.financing_accounts),
            liabilities=frozenset(settings.liability_accounts),
            bank_fees=frozenset(settings.bank_fee_accounts),
        )

    def replace(self, **changes: Iterable[str]) -> "AccountTables":
        """Return a copy with some tables swapped out."""
        values = {
            "operating": self.operating,
            "investing": self.investing,
            "financing": self.financing,
            "liabilities": self.liabilities,
            "bank_fees": self.bank_fees,
        }
        for key, accounts in changes.items():
            if key not in values:
                raise KeyError(f"Unknown account table: {key}")
            values[key] = frozenset(accounts)
        return AccountTables(**values)


def round_money(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
