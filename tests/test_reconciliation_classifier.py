"""
Tests for the reconciliation classifier.
"""

import pytest
from decimal import Decimal

from ledger_recon.config import Settings
from ledger_recon.engine import AccountTables, ReconciliationClassifier
from ledger_recon.engine.rules import DEFAULT_RULE
from ledger_recon.models import LedgerEntry, ReconcilingItemType


@pytest.fixture
def classifier():
    return ReconciliationClassifier(AccountTables.from_settings(Settings(_env_file=None)))


class TestReconciliationClassifier:
    """Test suite for reconciling item rules."""

    def test_cash_debit_on_bank_is_deposit_in_transit(self, classifier):
        entry = LedgerEntry(id="d1", account="Cash", debit=1200, bank_account="MainBank",
                            note="Customer deposit", reference="DEP010")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.DEPOSIT_IN_TRANSIT
        assert result.transaction_amount == Decimal("1200")
        assert result.description == "Deposit in transit - Customer deposit"

    def test_cash_credit_on_bank_is_outstanding_withdrawal(self, classifier):
        entry = LedgerEntry(id="w1", account="Cash", credit=400, bank_account="MainBank")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.OUTSTANDING_WITHDRAWAL
        assert result.transaction_amount == Decimal("-400")
        assert result.description == "Outstanding withdrawal - Cash withdrawal"

    def test_non_cash_credit_on_bank_is_outstanding_check(self, classifier):
        entry = LedgerEntry(id="c1", account="Equipment", credit=3000, bank_account="MainBank",
                            reference="CHQ102")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.OUTSTANDING_CHECK
        assert result.transaction_amount == Decimal("3000")
        assert result.description == "Outstanding check - Equipment"
        assert result.rule == "outstanding_check"

    def test_bank_charge_on_bank_credit_is_not_an_outstanding_check(self, classifier):
        entry = LedgerEntry(id="c2", account="Bank Charges", credit=35, bank_account="MainBank")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.UNRECORDED_BANK_CHARGE
        assert result.rule == "bank_charge_on_bank_credit"

    def test_bank_fee_account_without_bank_account(self, classifier):
        entry = LedgerEntry(id="b1", account="Bank Charges", credit=500, reference="CHQ104")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.UNRECORDED_BANK_CHARGE
        assert result.transaction_amount == Decimal("500")
        assert result.description == "Unrecorded bank charges - Bank Charges"
        assert result.rule == "unrecorded_bank_charge"

    @pytest.mark.parametrize("account,party,note", [
        ("Wire Transfer Fees", None, None),
        ("Processing Charge", "City Credit Union", None),
        ("Miscellaneous", "Acme Financial", "Monthly account service"),
        ("Miscellaneous", None, "Monthly fee for March"),
        ("Office Supplies", "Staples", "includes bank charge"),
    ])
    def test_bank_charge_detection(self, classifier, account, party, note):
        entry = LedgerEntry(id="b2", account=account, credit=20, party=party, note=note)

        assert classifier.is_unrecorded_bank_charge(entry)
        assert classifier.classify(entry).item_type == ReconcilingItemType.UNRECORDED_BANK_CHARGE

    @pytest.mark.parametrize("account,party,note", [
        ("Office Supplies", "Staples", "Printer paper"),
        ("Processing Charge", "Vendor Inc", None),
        ("Miscellaneous", "First National Bank", "Courier"),
    ])
    def test_not_a_bank_charge(self, classifier, account, party, note):
        entry = LedgerEntry(id="b3", account=account, credit=20, party=party, note=note)

        assert not classifier.is_unrecorded_bank_charge(entry)

    def test_non_cash_debit_on_bank_is_unrecorded_deposit(self, classifier):
        entry = LedgerEntry(id="u1", account="Accounts Receivable", debit=650,
                            bank_account="MainBank", note="Direct deposit from client")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.UNRECORDED_DEPOSIT
        assert result.transaction_amount == Decimal("650")
        assert result.description == "Unrecorded deposit - Direct deposit from client"

    def test_interest_income_is_unrecorded_interest(self, classifier):
        entry = LedgerEntry(id="i1", account="Interest Income", credit=12.5)

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.UNRECORDED_INTEREST
        assert result.transaction_amount == Decimal("12.5")
        assert result.description == "Unrecorded interest - Interest earned"

    def test_interest_note_is_unrecorded_interest(self, classifier):
        entry = LedgerEntry(id="i2", account="Other Income", credit=8, note="Savings interest")

        assert classifier.classify(entry).item_type == ReconcilingItemType.UNRECORDED_INTEREST

    def test_unmatched_entry_is_other(self, classifier):
        entry = LedgerEntry(id="o1", account="Sales", credit=1000, party="Customer B")

        result = classifier.classify(entry)

        assert result.item_type == ReconcilingItemType.OTHER
        assert result.rule == DEFAULT_RULE
        assert result.is_gap
        assert result.description == "Unreconciled transaction"

    def test_other_uses_note_as_description(self, classifier):
        entry = LedgerEntry(id="o2", account="Sales", credit=10, note="Journal correction")

        assert classifier.classify(entry).description == "Journal correction"

    @pytest.mark.parametrize("debit,credit,expected", [
        (0, 250, "250"),
        (250, 0, "250"),
        (100, 40, "40"),
    ])
    def test_non_cash_amount_prefers_credit(self, classifier, debit, credit, expected):
        entry = LedgerEntry(id="a1", account="Sales", debit=debit, credit=credit)

        assert classifier.transaction_amount(entry) == Decimal(expected)

    def test_classification_is_idempotent(self, classifier):
        entry = LedgerEntry(id="x1", account="Bank Charges", credit=15, bank_account="MainBank")

        assert classifier.classify(entry) == classifier.classify(entry)

    def test_injected_bank_fee_table(self):
        tables = AccountTables.from_settings(Settings(_env_file=None)).replace(bank_fees=["Card Fees"])
        classifier = ReconciliationClassifier(tables)

        custom = LedgerEntry(id="f1", account="Card Fees", credit=9)
        default = LedgerEntry(id="f2", account="Bank Charges", credit=9)

        assert classifier.classify(custom).item_type == ReconcilingItemType.UNRECORDED_BANK_CHARGE
        assert classifier.classify(default).item_type == ReconcilingItemType.OTHER
