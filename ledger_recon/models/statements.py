"""Report models produced by the classification engine.

Monetary fields hold Decimals already rounded to cents; ``to_dict`` renders
the camelCase JSON shape returned by the HTTP API.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .enums import ActivityCategory, AdjustmentType, ReconcilingItemType


def _money(value: Decimal) -> float:
    return float(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class ClassificationDiagnostics:
    """Rule coverage counters for one classification run."""
    rule_hits: Dict[str, int] = field(default_factory=dict)
    classification_gaps: int = 0
    excluded_entries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleHits": dict(self.rule_hits),
            "classificationGaps": self.classification_gaps,
            "excludedEntries": self.excluded_entries,
        }


# ---------------------------------------------------------------------------
# Cash flow statement
# ---------------------------------------------------------------------------

@dataclass
class CashFlowLineItem:
    """A single inflow or outflow; amount is always a magnitude."""
    account: str
    amount: Decimal
    party: Optional[str] = None
    note: Optional[str] = None
    date: Optional[date] = None
    entry_id: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "amount": _money(self.amount),
            "party": self.party,
            "note": self.note,
            "date": _iso(self.date),
        }


@dataclass
class ActivitySection:
    """Inflows, outflows and net flow of one activity category."""
    category: ActivityCategory
    inflows: List[CashFlowLineItem] = field(default_factory=list)
    outflows: List[CashFlowLineItem] = field(default_factory=list)
    net_cash_flow: Decimal = Decimal("0.00")

    def to_dict(self) -> Dict[str, Any]:
        net_key = f"net{self.category.value}CashFlow"
        return {
            "inflows": [item.to_dict() for item in self.inflows],
            "outflows": [item.to_dict() for item in self.outflows],
            net_key: _money(self.net_cash_flow),
        }


@dataclass
class StatementPeriod:
    from_date: Optional[date]
    to_date: Optional[date]
    company_id: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromDate": _iso(self.from_date),
            "toDate": _iso(self.to_date),
            "companyId": self.company_id,
        }


@dataclass
class CashFlowSummary:
    total_inflows: Decimal
    total_outflows: Decimal
    net_change: Decimal
    opening_balance: Decimal
    closing_balance: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCashInflows": _money(self.total_inflows),
            "totalCashOutflows": _money(self.total_outflows),
            "netChangeInCash": _money(self.net_change),
            "openingCashBalance": _money(self.opening_balance),
            "closingCashBalance": _money(self.closing_balance),
        }


@dataclass
class CashFlowStatement:
    """Cash flow statement for one company and period."""
    period: StatementPeriod
    operating: ActivitySection
    investing: ActivitySection
    financing: ActivitySection
    summary: CashFlowSummary
    diagnostics: ClassificationDiagnostics = field(default_factory=ClassificationDiagnostics)

    @property
    def sections(self) -> Dict[ActivityCategory, ActivitySection]:
        return {
            ActivityCategory.OPERATING: self.operating,
            ActivityCategory.INVESTING: self.investing,
            ActivityCategory.FINANCING: self.financing,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "period": self.period.to_dict(),
            "operatingActivities": self.operating.to_dict(),
            "investingActivities": self.investing.to_dict(),
            "financingActivities": self.financing.to_dict(),
            "summary": self.summary.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
        }


# ---------------------------------------------------------------------------
# Bank reconciliation statement
# ---------------------------------------------------------------------------

@dataclass
class ReconcilingLineItem:
    """
    An unreconciled entry as shown on the reconciliation report.

    type_label and adjustment_type are only set for ledger adjustments.
    """
    item_type: ReconcilingItemType
    amount: Decimal
    description: str
    account: str
    reference: Optional[str] = None
    date: Optional[date] = None
    party: Optional[str] = None
    note: Optional[str] = None
    type_label: Optional[str] = None
    adjustment_type: Optional[AdjustmentType] = None
    entry_id: Any = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "reference": self.reference,
            "date": _iso(self.date),
            "account": self.account,
            "amount": _money(self.amount),
            "description": self.description,
            "party": self.party,
            "note": self.note,
        }
        if self.adjustment_type is not None:
            data["type"] = self.type_label
            data["adjustmentType"] = self.adjustment_type.value
        return data


@dataclass
class ReconcilingItemGroup:
    items: List[ReconcilingLineItem] = field(default_factory=list)
    total_amount: Decimal = Decimal("0.00")

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "totalAmount": _money(self.total_amount),
            "count": self.count,
        }


@dataclass
class ReconciliationStatement:
    """Bank reconciliation for one company bank account."""
    company_id: Any
    bank_account: str
    ledger_balance: Decimal
    bank_statement_balance: Decimal
    outstanding_checks: ReconcilingItemGroup
    deposits_in_transit: ReconcilingItemGroup
    ledger_adjustments: ReconcilingItemGroup
    bank_errors: ReconcilingItemGroup
    adjusted_ledger_balance: Decimal
    adjusted_bank_balance: Decimal
    is_reconciled: bool
    difference: Decimal
    as_of_date: Optional[date] = None
    diagnostics: ClassificationDiagnostics = field(default_factory=ClassificationDiagnostics)

    @property
    def total_unreconciled_items(self) -> int:
        return (
            self.outstanding_checks.count
            + self.deposits_in_transit.count
            + self.ledger_adjustments.count
            + self.bank_errors.count
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "reconciliationDate": _iso(self.as_of_date),
            "asOfDate": _iso(self.as_of_date),
            "companyId": self.company_id,
            "bankAccount": self.bank_account,
            "ledgerBalance": _money(self.ledger_balance),
            "bankStatementBalance": _money(self.bank_statement_balance),
            "reconcilingItems": {
                "outstandingChecks": self.outstanding_checks.to_dict(),
                "depositsInTransit": self.deposits_in_transit.to_dict(),
                "ledgerAdjustments": self.ledger_adjustments.to_dict(),
                "bankErrors": self.bank_errors.to_dict(),
            },
            "adjustedLedgerBalance": _money(self.adjusted_ledger_balance),
            "adjustedBankBalance": _money(self.adjusted_bank_balance),
            "isReconciled": self.is_reconciled,
            "difference": _money(self.difference),
            "summary": {
                "totalUnreconciledItems": self.total_unreconciled_items,
                "ledgerBalanceAfterAdjustments": _money(self.adjusted_ledger_balance),
                "bankBalanceAfterAdjustments": _money(self.adjusted_bank_balance),
                "netDifference": _money(self.difference),
            },
            "diagnostics": self.diagnostics.to_dict(),
        }
