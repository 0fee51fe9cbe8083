"""
Cash flow aggregator.

Folds ledger entries through the CashFlowClassifier into per-activity
inflow/outflow buckets and grand totals, then formats the statement.
Totals are accumulated unrounded; each exposed field is rounded once.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from ..models import (
    ActivityCategory,
    ActivitySection,
    AuditAction,
    CashFlowLineItem,
    CashFlowStatement,
    CashFlowSummary,
    ClassificationDiagnostics,
    LedgerEntry,
    StatementPeriod,
    to_amount,
)
from ..utils.audit_logger import ClassificationAuditLog
from .cashflow_classifier import CashFlowClassifier
from .rules import round_money

logger = structlog.get_logger()

STATEMENT_CATEGORIES = (
    ActivityCategory.OPERATING,
    ActivityCategory.INVESTING,
    ActivityCategory.FINANCING,
)


@dataclass
class _Bucket:
    """Unrounded running totals for one activity category."""
    inflows: List[CashFlowLineItem] = field(default_factory=list)
    outflows: List[CashFlowLineItem] = field(default_factory=list)
    net: Decimal = Decimal("0")


@dataclass
class CashFlowTotals:
    """Unrounded result of folding entries through the classifier."""
    buckets: Dict[ActivityCategory, _Bucket]
    total_inflows: Decimal = Decimal("0")
    total_outflows: Decimal = Decimal("0")
    diagnostics: ClassificationDiagnostics = field(default_factory=ClassificationDiagnostics)

    @property
    def net_change(self) -> Decimal:
        return self.total_inflows - self.total_outflows


class CashFlowAggregator:
    """
    Builds a cash flow statement from a collection of ledger entries.

    Classification has no cross-entry dependency, so the totals do not
    depend on input order; items keep the order in which they were supplied.
    """

    def __init__(
        self,
        classifier: Optional[CashFlowClassifier] = None,
        audit_log: Optional[ClassificationAuditLog] = None,
    ):
        self.classifier = classifier or CashFlowClassifier()
        self.audit_log = audit_log

    def accumulate(
        self,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]],
    ) -> CashFlowTotals:
        """
        Classify every entry and accumulate per-category buckets.

        Raises InvalidInput if any entry is malformed; nothing is accumulated then.
        """
        ledger_entries = [LedgerEntry.coerce(e) for e in entries]

        totals = CashFlowTotals(
            buckets={category: _Bucket() for category in STATEMENT_CATEGORIES},
        )
        rule_hits: Counter = Counter()

        for entry in ledger_entries:
            result = self.classifier.classify(entry)
            rule_hits[result.rule] += 1

            if result.is_excluded:
                totals.diagnostics.excluded_entries += 1
                self._audit(AuditAction.ENTRY_EXCLUDED, entry, result.rule, result.category.value)
                continue

            amount = result.signed_amount
            if amount == 0:
                logger.debug("Skipping zero-amount entry", entry_id=entry.id)
                continue

            if result.is_gap:
                totals.diagnostics.classification_gaps += 1
                self._audit(AuditAction.CLASSIFICATION_GAP, entry, result.rule, result.category.value)
            else:
                self._audit(AuditAction.ENTRY_CLASSIFIED, entry, result.rule, result.category.value)

            item = CashFlowLineItem(
                account=entry.account,
                amount=abs(amount),
                party=entry.party,
                note=entry.note,
                date=entry.date,
                entry_id=entry.id,
            )

            bucket = totals.buckets[result.category]
            bucket.net += amount
            if amount > 0:
                bucket.inflows.append(item)
                totals.total_inflows += amount
            else:
                bucket.outflows.append(item)
                totals.total_outflows += -amount

        totals.diagnostics.rule_hits = dict(rule_hits)

        logger.info(
            "Cash flow entries classified",
            entries=len(ledger_entries),
            excluded=totals.diagnostics.excluded_entries,
            gaps=totals.diagnostics.classification_gaps,
        )
        return totals

    def aggregate(
        self,
        entries: Iterable[Union[LedgerEntry, Mapping[str, Any]]],
        opening_balance: Any,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        company_id: Any = None,
    ) -> CashFlowStatement:
        """
        Build the cash flow statement.

        Args:
            entries: Ledger entries of the period
            opening_balance: Cash balance before the period
            from_date, to_date, company_id: Reported period bounds

        Returns:
            CashFlowStatement with rounded figures
        """
        opening = to_amount(opening_balance, "opening_balance")
        totals = self.accumulate(entries)
        return self.format(
            totals,
            opening,
            StatementPeriod(from_date=from_date, to_date=to_date, company_id=company_id),
        )

    def format(
        self,
        totals: CashFlowTotals,
        opening_balance: Decimal,
        period: StatementPeriod,
    ) -> CashFlowStatement:
        """Round the accumulated totals into the final statement."""
        sections = {
            category: ActivitySection(
                category=category,
                inflows=[self._rounded(item) for item in bucket.inflows],
                outflows=[self._rounded(item) for item in bucket.outflows],
                net_cash_flow=round_money(bucket.net),
            )
            for category, bucket in totals.buckets.items()
        }

        summary = CashFlowSummary(
            total_inflows=round_money(totals.total_inflows),
            total_outflows=round_money(totals.total_outflows),
            net_change=round_money(totals.net_change),
            opening_balance=round_money(opening_balance),
            closing_balance=round_money(opening_balance + totals.net_change),
        )

        return CashFlowStatement(
            period=period,
            operating=sections[ActivityCategory.OPERATING],
            investing=sections[ActivityCategory.INVESTING],
            financing=sections[ActivityCategory.FINANCING],
            summary=summary,
            diagnostics=totals.diagnostics,
        )

    @staticmethod
    def _rounded(item: CashFlowLineItem) -> CashFlowLineItem:
        return CashFlowLineItem(
            account=item.account,
            amount=round_money(item.amount),
            party=item.party,
            note=item.note,
            date=item.date,
            entry_id=item.entry_id,
        )

    def _audit(self, action: AuditAction, entry: LedgerEntry, rule: str, outcome: str) -> None:
        if action == AuditAction.ENTRY_EXCLUDED:
            logger.debug("Entry excluded", entry_id=entry.id, reason=rule)
        elif action == AuditAction.CLASSIFICATION_GAP and self.audit_log is None:
            logger.warning("Entry matched no cash flow rule", entry_id=entry.id, account=entry.account)
        if self.audit_log is None:
            return
        self.audit_log.record(
            action,
            entry_id=entry.id,
            rule=rule,
            outcome=outcome,
            message=f"Cash flow: {entry.account} -> {outcome}",
            account=entry.account,
        )
