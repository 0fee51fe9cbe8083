"""Ledger classification and reconciliation engine."""

from .rules import AccountTables, Rule, first_match, round_money
from .cashflow_classifier import CashFlowClassification, CashFlowClassifier
from .cashflow_aggregator import CashFlowAggregator
from .reconciliation_classifier import ReconciliationClassification, ReconciliationClassifier
from .reconciliation_aggregator import ReconciliationAggregator
from .service import (
    LedgerReportService,
    compute_cash_flow_statement,
    compute_reconciliation_statement,
)

__all__ = [
    "AccountTables",
    "Rule",
    "first_match",
    "round_money",
    "CashFlowClassification",
    "CashFlowClassifier",
    "CashFlowAggregator",
    "ReconciliationClassification",
    "ReconciliationClassifier",
    "ReconciliationAggregator",
    "LedgerReportService",
    "compute_cash_flow_statement",
    "compute_reconciliation_statement",
]
