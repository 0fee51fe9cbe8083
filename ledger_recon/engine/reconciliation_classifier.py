"""
Reconciliation classifier.

Maps one unreconciled ledger entry to a reconciling-item type, a
transaction amount and a report description.

Outstanding items (recorded by the company, not yet processed by the bank)
are corrected on the bank side; unrecorded items (processed by the bank,
not yet booked by the company) are corrected on the ledger side.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..models import LedgerEntry, ReconcilingItemType, SpecialAccount
from .rules import DEFAULT_RULE, AccountTables, Rule, first_match

BANK_PARTY_KEYWORDS = ("bank", "financial", "credit union")
FEE_ACCOUNT_KEYWORDS = ("charge", "fee")
FEE_NOTE_KEYWORDS = ("service", "monthly")
BANK_CHARGE_NOTE_PHRASES = (
    "bank charge",
    "service charge",
    "monthly fee",
    "bank fee",
    "maintenance fee",
)
INTEREST_NOTE_KEYWORDS = ("interest",)

# item type -> (description prefix, fallback text; None falls back to the account name)
DESCRIPTION_TEMPLATES: Dict[ReconcilingItemType, Tuple[Optional[str], Optional[str]]] = {
    ReconcilingItemType.DEPOSIT_IN_TRANSIT: ("Deposit in transit", "Cash deposit"),
    ReconcilingItemType.OUTSTANDING_WITHDRAWAL: ("Outstanding withdrawal", "Cash withdrawal"),
    ReconcilingItemType.OUTSTANDING_CHECK: ("Outstanding check", None),
    ReconcilingItemType.UNRECORDED_BANK_CHARGE: ("Unrecorded bank charges", None),
    ReconcilingItemType.UNRECORDED_DEPOSIT: ("Unrecorded deposit", None),
    ReconcilingItemType.UNRECORDED_INTEREST: ("Unrecorded interest", "Interest earned"),
    ReconcilingItemType.OTHER: (None, "Unreconciled transaction"),
}


@dataclass(frozen=True)
class ReconciliationClassification:
    """Outcome of classifying one unreconciled entry."""
    entry_id: Any
    item_type: ReconcilingItemType
    transaction_amount: Decimal
    description: str
    rule: str

    @property
    def is_gap(self) -> bool:
        return self.rule == DEFAULT_RULE


class ReconciliationClassifier:
    """
    Ordered-rule classifier for bank reconciliation items.

    Rules (first match wins):
        1. Cash debit on a bank account               -> DEPOSIT_IN_TRANSIT
        2. Cash credit on a bank account              -> OUTSTANDING_WITHDRAWAL
        3. Non-cash credit on a bank account that
           looks like a bank charge                   -> UNRECORDED_BANK_CHARGE
        4. Non-cash credit on a bank account          -> OUTSTANDING_CHECK
        5. Any bank charge                            -> UNRECORDED_BANK_CHARGE
        6. Non-cash debit on a bank account           -> UNRECORDED_DEPOSIT
        7. Interest Income account or interest note   -> UNRECORDED_INTEREST
        Default: OTHER
    """

    def __init__(self, tables: Optional[AccountTables] = None):
        self.tables = tables or AccountTables.from_settings()
        self.rules = self._build_rules()

    def _build_rules(self) -> List[Rule]:
        is_bank_charge = self.is_unrecorded_bank_charge
        return [
            Rule(
                name="deposit_in_transit",
                predicate=lambda e: e.is_cash and e.debit > 0 and e.has_bank_account,
                outcome=ReconcilingItemType.DEPOSIT_IN_TRANSIT,
            ),
            Rule(
                name="outstanding_withdrawal",
                predicate=lambda e: e.is_cash and e.credit > 0 and e.has_bank_account,
                outcome=ReconcilingItemType.OUTSTANDING_WITHDRAWAL,
            ),
            Rule(
                name="bank_charge_on_bank_credit",
                predicate=lambda e: (
                    not e.is_cash and e.credit > 0 and e.has_bank_account and is_bank_charge(e)
                ),
                outcome=ReconcilingItemType.UNRECORDED_BANK_CHARGE,
            ),
            Rule(
                name="outstanding_check",
                predicate=lambda e: not e.is_cash and e.credit > 0 and e.has_bank_account,
                outcome=ReconcilingItemType.OUTSTANDING_CHECK,
            ),
            Rule(
                name="unrecorded_bank_charge",
                predicate=is_bank_charge,
                outcome=ReconcilingItemType.UNRECORDED_BANK_CHARGE,
            ),
            Rule(
                name="unrecorded_deposit",
                predicate=lambda e: not e.is_cash and e.debit > 0 and e.has_bank_account,
                outcome=ReconcilingItemType.UNRECORDED_DEPOSIT,
            ),
            Rule(
                name="unrecorded_interest",
                predicate=lambda e: (
                    e.account == SpecialAccount.INTEREST_INCOME.value
                    or e.note_contains(*INTEREST_NOTE_KEYWORDS)
                ),
                outcome=ReconcilingItemType.UNRECORDED_INTEREST,
            ),
        ]

    def is_unrecorded_bank_charge(self, entry: LedgerEntry) -> bool:
        """
        Check if an entry looks like a bank-initiated charge.

        True when the account is a known bank-fee account, when a bank-like
        party books a fee-like account or service/monthly note, or when the
        note uses bank charge language.
        """
        if entry.account in self.tables.bank_fees:
            return True

        if entry.party_contains(*BANK_PARTY_KEYWORDS) and (
            entry.account_contains(*FEE_ACCOUNT_KEYWORDS)
            or entry.note_contains(*FEE_NOTE_KEYWORDS)
        ):
            return True

        return entry.note_contains(*BANK_CHARGE_NOTE_PHRASES)

    @staticmethod
    def transaction_amount(entry: LedgerEntry) -> Decimal:
        """Signed debit - credit for Cash; otherwise the credit, or the debit when no credit."""
        if entry.is_cash:
            return entry.signed_amount
        return entry.credit if entry.credit > 0 else entry.debit

    @staticmethod
    def describe(entry: LedgerEntry, item_type: ReconcilingItemType) -> str:
        prefix, fallback = DESCRIPTION_TEMPLATES[item_type]
        text = entry.note or (fallback if fallback is not None else entry.account)
        if prefix is None:
            return text
        return f"{prefix} - {text}"

    def classify(self, entry: Union[LedgerEntry, Mapping[str, Any]]) -> ReconciliationClassification:
        """Classify a single unreconciled entry."""
        entry = LedgerEntry.coerce(entry)

        rule = first_match(self.rules, entry)
        if rule is None:
            item_type, rule_name = ReconcilingItemType.OTHER, DEFAULT_RULE
        else:
            item_type, rule_name = rule.outcome, rule.name

        return ReconciliationClassification(
            entry_id=entry.id,
            item_type=item_type,
            transaction_amount=self.transaction_amount(entry),
            description=self.describe(entry, item_type),
            rule=rule_name,
        )
