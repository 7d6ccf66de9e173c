"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from lendbook.config import ReconciliationConfig
from lendbook.models import Account, Lending, LendingTerms
from lendbook.store import LendingLedger


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> date:
    """Pinned reference date."""
    return date(2024, 7, 1)


@pytest.fixture
def sample_terms() -> LendingTerms:
    """1000 at 12% a year, lent on 2024-01-01."""
    return LendingTerms(
        principal=Decimal("1000"),
        annual_rate_percent=Decimal("12"),
        lent_at=date(2024, 1, 1),
    )


@pytest.fixture
def sample_account_id() -> str:
    """Sample account ID."""
    return "acct-test-001"


@pytest.fixture
def ledger(today: date, sample_account_id: str) -> LendingLedger:
    """Ledger pinned to ``today`` with one account holding 5000."""
    ledger = LendingLedger(config=ReconciliationConfig(), clock=lambda: today)
    ledger.add_account(Account(account_id=sample_account_id, name="Checking", balance=Decimal("5000")))
    return ledger


@pytest.fixture
def sample_lending(sample_account_id: str) -> Lending:
    """Unsaved lending matching ``sample_terms``, funded from the sample account."""
    return Lending(
        lending_id="lend-test-001",
        borrower_name="Jane Doe",
        principal=Decimal("1000"),
        annual_rate_percent=Decimal("12"),
        lent_at=date(2024, 1, 1),
        account_id=sample_account_id,
    )
