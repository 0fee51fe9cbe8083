"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_BASE_PATH = Path(os.environ.get(
    "LEDGER_RECON_BASE_PATH",
    Path.home() / "Documents" / "ledger_recon",
))
ENV_FILE_PATH = APP_BASE_PATH / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = Field(default="development")
    app_log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Ledger store
    ledger_file: Path = Field(default=APP_BASE_PATH / "ledger.json")
    default_bank_account: str = Field(default="MainBank")

    # Reconciliation
    reconciliation_tolerance: float = Field(default=0.01)

    # Classification tables
    operating_accounts: List[str] = Field(default_factory=lambda: [
        "Office Rent",
        "Utilities Expense",
        "Bank Charges",
        "Salary Expense",
        "Insurance Expense",
        "Marketing Expense",
        "Professional Fees",
        "Inventory",
        "Accounts Receivable",
        "Prepaid Expenses",
    ])
    investing_accounts: List[str] = Field(default_factory=lambda: [
        "Equipment",
        "Property",
        "Land",
        "Building",
        "Investments",
        "Marketable Securities",
        "Patent",
        "Trademark",
    ])
    financing_accounts: List[str] = Field(default_factory=lambda: [
        "Common Stock",
        "Retained Earnings",
        "Dividends",
    ])
    liability_accounts: List[str] = Field(default_factory=lambda: [
        "Bank Loan",
        "Notes Payable",
        "Accounts Payable",
        "Accrued Liabilities",
    ])
    bank_fee_accounts: List[str] = Field(default_factory=lambda: [
        "Bank Charges",
        "Bank Fees",
        "Service Charges",
        "NSF Fees",
        "Wire Transfer Fees",
        "ATM Fees",
        "Monthly Service Fee",
        "Overdraft Fees",
        "Check Processing Fees",
    ])

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
