"""Data models for the ledger classification engine."""

from .enums import (
    ActivityCategory,
    AdjustmentType,
    AuditAction,
    ReconcilingItemType,
    SpecialAccount,
)
from .entry import LedgerEntry, to_amount
from .audit import AuditEntry
from .statements import (
    ActivitySection,
    CashFlowLineItem,
    CashFlowStatement,
    CashFlowSummary,
    ClassificationDiagnostics,
    ReconcilingItemGroup,
    ReconcilingLineItem,
    ReconciliationStatement,
    StatementPeriod,
)

__all__ = [
    # Enums
    "ActivityCategory",
    "AdjustmentType",
    "AuditAction",
    "ReconcilingItemType",
    "SpecialAccount",
    # Entries
    "LedgerEntry",
    "to_amount",
    "AuditEntry",
    # Statements
    "ActivitySection",
    "CashFlowLineItem",
    "CashFlowStatement",
    "CashFlowSummary",
    "ClassificationDiagnostics",
    "ReconcilingItemGroup",
    "ReconcilingLineItem",
    "ReconciliationStatement",
    "StatementPeriod",
]
