"""
Cash flow classifier.

Assigns each ledger entry to an activity category (Operating, Investing,
Financing) or excludes it, and computes its signed cash-flow amount
(debit - credit; positive = inflow, negative = outflow).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

import structlog

from ..models import ActivityCategory, LedgerEntry
from .rules import DEFAULT_RULE, AccountTables, Rule, first_match

logger = structlog.get_logger()

CAPITAL_KEYWORDS = ("capital", "contribution", "investment")
LOAN_NOTE_KEYWORDS = ("loan",)
LENDER_PARTY_KEYWORDS = ("bank", "lender")

# Exclusion reasons reported in place of a rule name
EXCLUDED_LIABILITY = "excluded_pure_liability"
EXCLUDED_NO_CASH_MOVEMENT = "excluded_no_cash_movement"


@dataclass(frozen=True)
class CashFlowClassification:
    """Outcome of classifying one entry."""
    entry_id: Any
    category: ActivityCategory
    signed_amount: Decimal
    rule: str

    @property
    def is_excluded(self) -> bool:
        return self.category == ActivityCategory.EXCLUDED

    @property
    def is_gap(self) -> bool:
        """Entry fell through every rule to the Operating default."""
        return self.rule == DEFAULT_RULE

    @property
    def is_inflow(self) -> bool:
        return self.signed_amount > 0

    @property
    def is_outflow(self) -> bool:
        return self.signed_amount < 0


class CashFlowClassifier:
    """
    Ordered-rule classifier for the cash flow statement.

    Eligibility:
        Cash account entries are always eligible. Other entries are eligible
        only when they touch a bank account and carry an amount, and never
        when the account is a pure liability.

    Category rules (first match wins):
        1. Cash debit with capital/contribution/investment note -> Financing
        2. Cash debit with loan note, or bank/lender party      -> Financing
        3. Cash debit                                            -> Operating
        4. Cash credit                                           -> Operating
        5-7. Account table lookup (operating, investing, financing)
        Default: Operating
    """

    def __init__(self, tables: Optional[AccountTables] = None):
        self.tables = tables or AccountTables.from_settings()
        self.rules = self._build_rules()

    def _build_rules(self) -> List[Rule]:
        tables = self.tables
        return [
            Rule(
                name="cash_capital_financing",
                predicate=lambda e: e.is_cash and e.debit > 0 and e.note_contains(*CAPITAL_KEYWORDS),
                outcome=ActivityCategory.FINANCING,
                description="Capital contributed in cash",
            ),
            Rule(
                name="cash_loan_financing",
                predicate=lambda e: e.is_cash and e.debit > 0 and (
                    e.note_contains(*LOAN_NOTE_KEYWORDS) or e.party_contains(*LENDER_PARTY_KEYWORDS)
                ),
                outcome=ActivityCategory.FINANCING,
                description="Loan proceeds received in cash",
            ),
            Rule(
                name="cash_inflow_operating",
                predicate=lambda e: e.is_cash and e.debit > 0,
                outcome=ActivityCategory.OPERATING,
                description="Other cash receipts",
            ),
            Rule(
                name="cash_outflow_operating",
                predicate=lambda e: e.is_cash and e.credit > 0,
                outcome=ActivityCategory.OPERATING,
                description="Cash payments",
            ),
            Rule(
                name="operating_account",
                predicate=lambda e: e.account in tables.operating,
                outcome=ActivityCategory.OPERATING,
                description="Expense and current-asset accounts",
            ),
            Rule(
                name="investing_account",
                predicate=lambda e: e.account in tables.investing,
                outcome=ActivityCategory.INVESTING,
                description="Long-term asset accounts",
            ),
            Rule(
                name="financing_account",
                predicate=lambda e: e.account in tables.financing,
                outcome=ActivityCategory.FINANCING,
                description="Equity accounts",
            ),
        ]

    def exclusion_reason(self, entry: LedgerEntry) -> Optional[str]:
        """Return why an entry is left out of the statement, or None if it is eligible."""
        if entry.is_cash:
            return None
        if entry.account in self.tables.liabilities:
            return EXCLUDED_LIABILITY
        if entry.has_bank_account and entry.has_movement:
            return None
        return EXCLUDED_NO_CASH_MOVEMENT

    def is_cash_flow_entry(self, entry: LedgerEntry) -> bool:
        return self.exclusion_reason(entry) is None

    def classify(self, entry: Union[LedgerEntry, Mapping[str, Any]]) -> CashFlowClassification:
        """
        Classify a single entry.

        The signed amount is debit - credit for every entry, whatever its account.
        """
        entry = LedgerEntry.coerce(entry)
        signed_amount = entry.signed_amount

        reason = self.exclusion_reason(entry)
        if reason is not None:
            return CashFlowClassification(
                entry_id=entry.id,
                category=ActivityCategory.EXCLUDED,
                signed_amount=signed_amount,
                rule=reason,
            )

        rule = first_match(self.rules, entry)
        if rule is None:
            return CashFlowClassification(
                entry_id=entry.id,
                category=ActivityCategory.OPERATING,
                signed_amount=signed_amount,
                rule=DEFAULT_RULE,
            )

        return CashFlowClassification(
            entry_id=entry.id,
            category=rule.outcome,
            signed_amount=signed_amount,
            rule=rule.name,
        )
