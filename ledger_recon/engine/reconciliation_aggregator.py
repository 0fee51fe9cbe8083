"""
Reconciliation aggregator.

Folds unreconciled entries through the ReconciliationClassifier, applies the
balance adjustment of each item type and formats the reconciliation statement.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from ..config import get_settings
from ..models import (
    AdjustmentType,
    AuditAction,
    ClassificationDiagnostics,
    LedgerEntry,
    ReconcilingItemGroup,
    ReconcilingItemType,
    ReconcilingLineItem,
    ReconciliationStatement,
    to_amount,
)
from ..utils.audit_logger import ClassificationAuditLog
from .reconciliation_classifier import ReconciliationClassifier
from .rules import round_money

logger = structlog.get_logger()

BANK_SIDE = "bank"
LEDGER_SIDE = "ledger"

OUTSTANDING_CHECKS = "outstanding_checks"
DEPOSITS_IN_TRANSIT = "deposits_in_transit"
LEDGER_ADJUSTMENTS = "ledger_adjustments"
BANK_ERRORS = "bank_errors"
GROUPS = (OUTSTANDING_CHECKS, DEPOSITS_IN_TRANSIT, LEDGER_ADJUSTMENTS, BANK_ERRORS)


@dataclass(frozen=True)
class BalanceAdjustment:
    """Where an item type is reported and which balance it corrects."""
    group: str
    side: Optional[str] = None
    adjustment_type: Optional[AdjustmentType] = None
    label: Optional[str] = None

    @property
    def sign(self) -> int:
        return -1 if self.adjustment_type == AdjustmentType.DECREASE else 1


ADJUSTMENT_RULES: Dict[ReconcilingItemType, BalanceAdjustment] = {
    ReconcilingItemType.OUTSTANDING_CHECK: BalanceAdjustment(OUTSTANDING_CHECKS, BANK_SIDE),
    ReconcilingItemType.DEPOSIT_IN_TRANSIT: BalanceAdjustment(DEPOSITS_IN_TRANSIT, BANK_SIDE),
    # Outstanding withdrawals are shown together with deposits in transit
    ReconcilingItemType.OUTSTANDING_WITHDRAWAL: BalanceAdjustment(DEPOSITS_IN_TRANSIT, BANK_SIDE),
    ReconcilingItemType.UNRECORDED_DEPOSIT: BalanceAdjustment(
        LEDGER_ADJUSTMENTS, LEDGER_SIDE, AdjustmentType.INCREASE, "Unrecorded deposit"
    ),
    ReconcilingItemType.UNRECORDED_INTEREST: BalanceAdjustment(
        LEDGER_ADJUSTMENTS, LEDGER_SIDE, AdjustmentType.INCREASE, "Unrecorded interest"
    ),
    ReconcilingItemType.UNRECORDED_BANK_CHARGE: BalanceAdjustment(
        LEDGER_ADJUSTMENTS, LEDGER_SIDE, AdjustmentType.DECREASE, "Unrecorded bank charges"
    ),
    ReconcilingItemType.OTHER: BalanceAdjustment(BANK_ERRORS),
}


@dataclass
class ReconciliationTotals:
    """Unrounded result of applying every reconciling item."""
    groups: Dict[str, List[ReconcilingLineItem]]
    group_totals: Dict[str, Decimal]
    adjusted_ledger_balance: Decimal
    adjusted_bank_balance: Decimal
    diagnostics: ClassificationDiagnostics = field(default_factory=ClassificationDiagnostics)

    @property
    def difference(self) -> Decimal:
        return self.adjusted_ledger_balance - self.adjusted_bank_balance


class ReconciliationAggregator:
    """
    Builds a bank reconciliation statement.

    Balances are always supplied by the caller; the aggregator holds no
    balance of its own.
    """

    def __init__(
        self,
        classifier: Optional[ReconciliationClassifier] = None,
        audit_log: Optional[ClassificationAuditLog] = None,
        tolerance: Optional[Any] = None,
    ):
        self.classifier = classifier or ReconciliationClassifier()
        self.audit_log = audit_log
        if tolerance is None:
            tolerance = get_settings().reconciliation_tolerance
        self.tolerance = to_amount(tolerance, "tolerance", allow_negative=False)

    def apply(
        self,
        ledger_balance: Decimal,
        bank_balance: Decimal,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]],
    ) -> ReconciliationTotals:
        """
        Classify every entry and apply its balance adjustment.

        Raises InvalidInput if any entry is malformed; nothing is applied then.
        """
        ledger_entries = [LedgerEntry.coerce(e) for e in entries]

        groups: Dict[str, List[ReconcilingLineItem]] = {name: [] for name in GROUPS}
        group_totals: Dict[str, Decimal] = {name: Decimal("0") for name in GROUPS}
        adjusted = {LEDGER_SIDE: ledger_balance, BANK_SIDE: bank_balance}
        rule_hits: Counter = Counter()
        gaps = 0

        for entry in ledger_entries:
            result = self.classifier.classify(entry)
            rule_hits[result.rule] += 1
            adjustment = ADJUSTMENT_RULES[result.item_type]
            amount = abs(result.transaction_amount)

            groups[adjustment.group].append(ReconcilingLineItem(
                item_type=result.item_type,
                amount=amount,
                description=result.description,
                account=entry.account,
                reference=entry.reference,
                date=entry.date,
                party=entry.party,
                note=entry.note,
                type_label=adjustment.label,
                adjustment_type=adjustment.adjustment_type,
                entry_id=entry.id,
            ))
            group_totals[adjustment.group] += adjustment.sign * amount

            if adjustment.side is not None:
                adjusted[adjustment.side] += adjustment.sign * amount

            if result.is_gap:
                gaps += 1
                self._audit(AuditAction.CLASSIFICATION_GAP, entry, result.rule, result.item_type.value)
            else:
                self._audit(AuditAction.ENTRY_CLASSIFIED, entry, result.rule, result.item_type.value)

        logger.info(
            "Reconciling items classified",
            entries=len(ledger_entries),
            gaps=gaps,
        )

        return ReconciliationTotals(
            groups=groups,
            group_totals=group_totals,
            adjusted_ledger_balance=adjusted[LEDGER_SIDE],
            adjusted_bank_balance=adjusted[BANK_SIDE],
            diagnostics=ClassificationDiagnostics(
                rule_hits=dict(rule_hits),
                classification_gaps=gaps,
            ),
        )

    def aggregate(
        self,
        ledger_balance: Any,
        bank_balance: Any,
        unreconciled_entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]],
        company_id: Any = None,
        bank_account: Optional[str] = None,
        as_of_date: Optional[date] = None,
    ) -> ReconciliationStatement:
        """
        Build the reconciliation statement.

        Args:
            ledger_balance: Cash balance according to the company ledger
            bank_balance: Balance reported on the bank statement
            unreconciled_entries: Entries not yet matched to the bank statement
            company_id, bank_account, as_of_date: Reported identifiers

        Returns:
            ReconciliationStatement with rounded figures
        """
        ledger = to_amount(ledger_balance, "ledger_balance")
        bank = to_amount(bank_balance, "bank_balance")
        totals = self.apply(ledger, bank, unreconciled_entries)
        return self.format(totals, ledger, bank, company_id, bank_account, as_of_date)

    def format(
        self,
        totals: ReconciliationTotals,
        ledger_balance: Decimal,
        bank_balance: Decimal,
        company_id: Any = None,
        bank_account: Optional[str] = None,
        as_of_date: Optional[date] = None,
    ) -> ReconciliationStatement:
        """
        Round the applied totals into the final statement.

        The reconciled verdict is computed from the unrounded difference, before
        any rounding: a raw difference of exactly half a cent is reconciled even
        though the reported difference rounds to 0.01.
        """
        groups = {
            name: ReconcilingItemGroup(
                items=[self._rounded(item) for item in totals.groups[name]],
                total_amount=round_money(totals.group_totals[name]),
            )
            for name in GROUPS
        }
        is_reconciled = abs(totals.difference) < self.tolerance

        return ReconciliationStatement(
            company_id=company_id,
            bank_account=bank_account or get_settings().default_bank_account,
            ledger_balance=round_money(ledger_balance),
            bank_statement_balance=round_money(bank_balance),
            outstanding_checks=groups[OUTSTANDING_CHECKS],
            deposits_in_transit=groups[DEPOSITS_IN_TRANSIT],
            ledger_adjustments=groups[LEDGER_ADJUSTMENTS],
            bank_errors=groups[BANK_ERRORS],
            adjusted_ledger_balance=round_money(totals.adjusted_ledger_balance),
            adjusted_bank_balance=round_money(totals.adjusted_bank_balance),
            is_reconciled=is_reconciled,
            difference=round_money(totals.difference),
            as_of_date=as_of_date,
            diagnostics=totals.diagnostics,
        )

    @staticmethod
    def _rounded(item: ReconcilingLineItem) -> ReconcilingLineItem:
        return ReconcilingLineItem(
            item_type=item.item_type,
            amount=round_money(item.amount),
            description=item.description,
            account=item.account,
            reference=item.reference,
            date=item.date,
            party=item.party,
            note=item.note,
            type_label=item.type_label,
            adjustment_type=item.adjustment_type,
            entry_id=item.entry_id,
        )

    def _audit(self, action: AuditAction, entry: LedgerEntry, rule: str, outcome: str) -> None:
        if action == AuditAction.CLASSIFICATION_GAP and self.audit_log is None:
            logger.warning("Entry matched no reconciliation rule", entry_id=entry.id, account=entry.account)
        if self.audit_log is None:
            return
        self.audit_log.record(
            action,
            entry_id=entry.id,
            rule=rule,
            outcome=outcome,
            message=f"Reconciliation: {entry.account} -> {outcome}",
            account=entry.account,
        )
