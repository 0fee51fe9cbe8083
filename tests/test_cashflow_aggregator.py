"""
Tests for cash flow aggregation.
"""

import random

import pytest
from unittest.mock import MagicMock, call
from datetime import date
from decimal import Decimal

from ledger_recon.config import Settings
from ledger_recon.engine import cashflow_aggregator
from ledger_recon.engine import (
    AccountTables,
    CashFlowAggregator,
    CashFlowClassifier,
    compute_cash_flow_statement,
    round_money,
)
from ledger_recon.exceptions import InvalidInput
from ledger_recon.models import ActivityCategory, LedgerEntry
from ledger_recon.utils import ClassificationAuditLog


@pytest.fixture
def tables():
    return AccountTables.from_settings(Settings(_env_file=None))


@pytest.fixture
def aggregator(tables):
    return CashFlowAggregator(CashFlowClassifier(tables))


@pytest.fixture
def january_entries():
    """A month of ledger activity touching every rule family."""
    return [
        LedgerEntry(id=1, date="2025-01-02", account="Cash", debit=10000,
                    party="Investor", note="Capital Contribution", bank_account="MainBank"),
        LedgerEntry(id=2, date="2025-01-03", account="Office Rent", credit=2000,
                    party="Landlord", note="January rent", bank_account="MainBank"),
        LedgerEntry(id=3, date="2025-01-05", account="Cash", debit=5000,
                    party="First National Bank", note="Loan proceeds", bank_account="MainBank"),
        LedgerEntry(id=4, date="2025-01-08", account="Cash", debit=3000,
                    party="Customer A", note="Payment received", bank_account="MainBank"),
        LedgerEntry(id=5, date="2025-01-10", account="Equipment", credit=1500,
                    party="Supplier", note="Laptop", bank_account="MainBank"),
        LedgerEntry(id=6, date="2025-01-12", account="Accounts Payable", credit=800,
                    party="Supplier", bank_account="MainBank"),
        LedgerEntry(id=7, date="2025-01-15", account="Sales", credit=3000, party="Customer A"),
        LedgerEntry(id=8, date="2025-01-20", account="Cash", debit=0, credit=0),
        LedgerEntry(id=9, date="2025-01-25", account="Miscellaneous", debit=250,
                    note="Refund", bank_account="MainBank"),
    ]


def _build(aggregator, entries, opening=1000):
    return aggregator.aggregate(
        entries,
        opening,
        from_date=date(2025, 1, 1),
        to_date=date(2025, 1, 31),
        company_id=1,
    )


class TestCashFlowAggregator:
    """Test suite for the cash flow statement."""

    def test_summary_totals(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        assert statement.summary.total_inflows == Decimal("18250.00")
        assert statement.summary.total_outflows == Decimal("3500.00")
        assert statement.summary.net_change == Decimal("14750.00")
        assert statement.summary.opening_balance == Decimal("1000.00")
        assert statement.summary.closing_balance == Decimal("15750.00")

    def test_section_nets(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        assert statement.operating.net_cash_flow == Decimal("1250.00")
        assert statement.investing.net_cash_flow == Decimal("-1500.00")
        assert statement.financing.net_cash_flow == Decimal("15000.00")

    def test_section_items_keep_input_order(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        assert [i.entry_id for i in statement.operating.inflows] == [4, 9]
        assert [i.entry_id for i in statement.operating.outflows] == [2]
        assert [i.entry_id for i in statement.financing.inflows] == [1, 3]
        assert [i.entry_id for i in statement.investing.outflows] == [5]
        assert statement.investing.inflows == []

    def test_item_amounts_are_magnitudes(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        for section in statement.sections.values():
            for item in section.inflows + section.outflows:
                assert item.amount > 0

    def test_net_change_equals_sum_of_section_nets(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        section_total = sum(s.net_cash_flow for s in statement.sections.values())
        assert section_total == statement.summary.net_change
        assert statement.summary.net_change == (
            statement.summary.total_inflows - statement.summary.total_outflows
        )

    def test_excluded_and_zero_entries_are_dropped(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        listed = {
            item.entry_id
            for section in statement.sections.values()
            for item in section.inflows + section.outflows
        }
        assert listed == {1, 2, 3, 4, 5, 9}

    def test_diagnostics(self, aggregator, january_entries):
        statement = _build(aggregator, january_entries)

        assert statement.diagnostics.excluded_entries == 2
        assert statement.diagnostics.classification_gaps == 1
        assert statement.diagnostics.rule_hits["cash_capital_financing"] == 1
        assert statement.diagnostics.rule_hits["cash_loan_financing"] == 1
        assert statement.diagnostics.rule_hits["excluded_pure_liability"] == 1

    def test_totals_do_not_depend_on_order(self, aggregator, january_entries):
        shuffled = list(january_entries)
        random.Random(7).shuffle(shuffled)

        first = _build(aggregator, january_entries)
        second = _build(aggregator, shuffled)

        assert first.summary == second.summary
        for category in (ActivityCategory.OPERATING, ActivityCategory.INVESTING, ActivityCategory.FINANCING):
            assert first.sections[category].net_cash_flow == second.sections[category].net_cash_flow

    def test_empty_period(self, aggregator):
        statement = _build(aggregator, [], opening="250.50")

        assert statement.summary.total_inflows == Decimal("0.00")
        assert statement.summary.closing_balance == Decimal("250.50")
        assert statement.operating.inflows == []

    def test_negative_opening_balance_is_allowed(self, aggregator):
        statement = _build(aggregator, [
            LedgerEntry(id=1, account="Cash", debit=100, party="Customer"),
        ], opening=-300)

        assert statement.summary.closing_balance == Decimal("-200.00")

    def test_rounding_happens_once_per_field(self, aggregator):
        entries = [
            LedgerEntry(id=i, account="Cash", debit="0.004", party="Customer")
            for i in range(3)
        ]

        statement = _build(aggregator, entries, opening=0)

        # 0.012 rounds to 0.01 while each item rounds to 0.00
        assert statement.summary.total_inflows == Decimal("0.01")
        assert statement.operating.net_cash_flow == Decimal("0.01")
        assert all(item.amount == Decimal("0.00") for item in statement.operating.inflows)

    def test_float_amounts_do_not_drift(self, aggregator):
        entries = [
            LedgerEntry(id=1, account="Cash", debit=0.1, party="Customer"),
            LedgerEntry(id=2, account="Cash", debit=0.2, party="Customer"),
        ]

        statement = _build(aggregator, entries, opening=0)

        assert statement.summary.total_inflows == Decimal("0.30")

    def test_huge_amount_is_invalid_input(self, aggregator):
        entries = [{"id": 1, "account": "Cash", "debit": 1e30, "credit": 0, "party": "X"}]

        with pytest.raises(InvalidInput) as exc_info:
            _build(aggregator, entries)

        assert exc_info.value.entry_id == 1
        assert exc_info.value.field == "debit"

    def test_huge_opening_balance_is_invalid_input(self, aggregator):
        with pytest.raises(InvalidInput) as exc_info:
            _build(aggregator, [], opening=Decimal("1e30"))

        assert exc_info.value.field == "opening_balance"

    def test_invalid_opening_balance(self, aggregator):
        with pytest.raises(InvalidInput) as exc_info:
            _build(aggregator, [], opening="n/a")

        assert exc_info.value.field == "opening_balance"

    def test_malformed_record_fails_whole_batch(self, aggregator):
        records = [
            {"id": 1, "account": "Cash", "debit": 100, "credit": 0},
            {"id": 2, "account": "Cash", "debit": "lots", "credit": 0},
        ]

        with pytest.raises(InvalidInput) as exc_info:
            _build(aggregator, records)

        assert exc_info.value.entry_id == 2
        assert exc_info.value.field == "debit"

    def test_excluded_entries_are_logged_without_audit_log(self, aggregator, january_entries, monkeypatch):
        mock_logger = MagicMock()
        monkeypatch.setattr(cashflow_aggregator, "logger", mock_logger)

        _build(aggregator, january_entries)

        mock_logger.debug.assert_has_calls([
            call("Entry excluded", entry_id=6, reason="excluded_pure_liability"),
            call("Entry excluded", entry_id=7, reason="excluded_no_cash_movement"),
        ])

    def test_audit_log_records_decisions(self, tables, january_entries):
        audit_log = ClassificationAuditLog(run_id="jan-2025")

        compute_cash_flow_statement(
            january_entries,
            1000,
            tables=tables,
            audit_log=audit_log,
        )

        summary = audit_log.summary()
        assert summary["run_id"] == "jan-2025"
        assert summary["gap_count"] == 1
        assert summary["action_counts"]["entry_excluded"] == 2
        assert summary["action_counts"]["entry_classified"] == 5
        assert audit_log.get_entries(rule_filter="default")[0].entry_id == 9

    def test_to_dict_shape(self, aggregator, january_entries):
        data = _build(aggregator, january_entries).to_dict()

        assert data["period"] == {"fromDate": "2025-01-01", "toDate": "2025-01-31", "companyId": 1}
        assert data["operatingActivities"]["netOperatingCashFlow"] == 1250.0
        assert data["investingActivities"]["netInvestingCashFlow"] == -1500.0
        assert data["financingActivities"]["netFinancingCashFlow"] == 15000.0
        assert data["summary"]["closingCashBalance"] == 15750.0
        assert data["financingActivities"]["inflows"][0] == {
            "account": "Cash",
            "amount": 10000.0,
            "party": "Investor",
            "note": "Capital Contribution",
            "date": "2025-01-02",
        }
        assert data["diagnostics"]["classificationGaps"] == 1


class TestRoundMoney:
    """Test suite for cent rounding."""

    @pytest.mark.parametrize("value,expected", [
        ("2.675", "2.68"),
        ("2.665", "2.67"),
        ("-0.005", "-0.01"),
        ("-2.675", "-2.68"),
        ("0.004", "0.00"),
        ("10", "10.00"),
    ])
    def test_halves_round_away_from_zero(self, value, expected):
        assert round_money(Decimal(value)) == Decimal(expected)

    def test_rounds_values_wider_than_default_context(self):
        value = Decimal("123456789012345678901234567890.785")

        assert round_money(value) == Decimal("123456789012345678901234567890.79")
