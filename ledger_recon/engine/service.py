"""
Engine entry points and the report service.

The compute_* functions are pure: they only see already-materialized entries
and balances. LedgerReportService fetches those inputs from a ledger store
concurrently, then hands them to the engine.
"""

import asyncio
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union

import structlog

from ..models import CashFlowStatement, LedgerEntry, ReconciliationStatement
from ..utils.audit_logger import ClassificationAuditLog
from .cashflow_aggregator import CashFlowAggregator
from .cashflow_classifier import CashFlowClassifier
from .reconciliation_aggregator import ReconciliationAggregator
from .reconciliation_classifier import ReconciliationClassifier
from .rules import AccountTables

logger = structlog.get_logger()

EntryLike = Union[LedgerEntry, Mapping[str, Any]]


def compute_cash_flow_statement(
    entries: Iterable[EntryLike],
    opening_balance: Any,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    company_id: Any = None,
    tables: Optional[AccountTables] = None,
    audit_log: Optional[ClassificationAuditLog] = None,
) -> CashFlowStatement:
    """Classify the period's entries into a cash flow statement."""
    aggregator = CashFlowAggregator(
        classifier=CashFlowClassifier(tables),
        audit_log=audit_log,
    )
    return aggregator.aggregate(
        entries,
        opening_balance,
        from_date=from_date,
        to_date=to_date,
        company_id=company_id,
    )


def compute_reconciliation_statement(
    ledger_balance: Any,
    bank_balance: Any,
    unreconciled_entries: Iterable[EntryLike],
    company_id: Any = None,
    bank_account: Optional[str] = None,
    as_of_date: Optional[date] = None,
    tables: Optional[AccountTables] = None,
    audit_log: Optional[ClassificationAuditLog] = None,
    tolerance: Optional[Any] = None,
) -> ReconciliationStatement:
    """Classify unreconciled entries and derive adjusted balances."""
    aggregator = ReconciliationAggregator(
        classifier=ReconciliationClassifier(tables),
        audit_log=audit_log,
        tolerance=tolerance,
    )
    return aggregator.aggregate(
        ledger_balance,
        bank_balance,
        unreconciled_entries,
        company_id=company_id,
        bank_account=bank_account,
        as_of_date=as_of_date,
    )


class LedgerReportService:
    """
    Fetch-then-classify coordinator.

    The store may be any object exposing the async get_* methods of
    LocalLedgerStore. Independent fetches are issued together.
    """

    def __init__(self, store, tables: Optional[AccountTables] = None):
        self.store = store
        self.tables = tables

    async def cash_flow_statement(
        self,
        company_id: Any,
        from_date: date,
        to_date: date,
    ) -> CashFlowStatement:
        opening_balance, entries = await asyncio.gather(
            self.store.get_opening_balance(company_id, from_date),
            self.store.get_transactions(company_id, from_date, to_date),
        )

        logger.info(
            "Building cash flow statement",
            company_id=company_id,
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat(),
            entries=len(entries),
        )

        return compute_cash_flow_statement(
            entries,
            opening_balance,
            from_date=from_date,
            to_date=to_date,
            company_id=company_id,
            tables=self.tables,
        )

    async def bank_reconciliation(
        self,
        company_id: Any,
        bank_account: Optional[str] = None,
        as_of_date: Optional[date] = None,
    ) -> ReconciliationStatement:
        ledger_balance, bank_balance, entries = await asyncio.gather(
            self.store.get_ledger_balance(company_id, bank_account),
            self.store.get_bank_statement_balance(company_id, bank_account),
            self.store.get_unreconciled_entries(company_id, bank_account),
        )

        logger.info(
            "Building bank reconciliation",
            company_id=company_id,
            bank_account=bank_account,
            unreconciled=len(entries),
        )

        return compute_reconciliation_statement(
            ledger_balance,
            bank_balance,
            entries,
            company_id=company_id,
            bank_account=bank_account,
            as_of_date=as_of_date or date.today(),
            tables=self.tables,
        )
