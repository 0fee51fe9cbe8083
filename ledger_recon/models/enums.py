"""Enumerations for the ledger classification engine."""

from enum import Enum


class ActivityCategory(str, Enum):
    """
    Cash-flow statement section of a ledger entry.

    EXCLUDED: Entry records no cash movement and is left out of the statement
    """
    OPERATING = "Operating"
    INVESTING = "Investing"
    FINANCING = "Financing"
    EXCLUDED = "Excluded"


class ReconcilingItemType(str, Enum):
    """
    Type of an unreconciled entry in a bank reconciliation.

    OUTSTANDING_*: Recorded in the ledger, not yet processed by the bank
    UNRECORDED_*: Processed by the bank, not yet recorded in the ledger
    """
    OUTSTANDING_CHECK = "OUTSTANDING_CHECK"
    DEPOSIT_IN_TRANSIT = "DEPOSIT_IN_TRANSIT"
    OUTSTANDING_WITHDRAWAL = "OUTSTANDING_WITHDRAWAL"
    UNRECORDED_DEPOSIT = "UNRECORDED_DEPOSIT"
    UNRECORDED_BANK_CHARGE = "UNRECORDED_BANK_CHARGE"
    UNRECORDED_INTEREST = "UNRECORDED_INTEREST"
    OTHER = "OTHER"


class AdjustmentType(str, Enum):
    """Direction of a ledger-side adjustment."""
    INCREASE = "increase"
    DECREASE = "decrease"


class SpecialAccount(str, Enum):
    """Accounts the classification rules refer to by name."""
    CASH = "Cash"
    INTEREST_INCOME = "Interest Income"
    SALES = "Sales"


class AuditAction(str, Enum):
    """Type of audit action."""
    ENTRY_CLASSIFIED = "entry_classified"
    ENTRY_EXCLUDED = "entry_excluded"
    CLASSIFICATION_GAP = "classification_gap"
