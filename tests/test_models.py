"""Tests for domain models."""

from datetime import date
from decimal import Decimal

import pytest

from lendbook.models import (
    Account,
    AccrualPolicy,
    Lending,
    LendingStatus,
    LendingTerms,
    ReconciliationResult,
    Repayment,
)


class TestLendingStatus:
    """Tests for LendingStatus enum."""

    def test_values(self) -> None:
        assert [s.value for s in LendingStatus] == [
            "ACTIVE",
            "PARTIALLY_PAID",
            "FULLY_PAID",
            "OVERDUE",
            "DEFAULTED",
        ]

    def test_str_enum(self) -> None:
        assert LendingStatus.ACTIVE == "ACTIVE"

    @pytest.mark.parametrize(
        "status,terminal",
        [
            (LendingStatus.ACTIVE, False),
            (LendingStatus.PARTIALLY_PAID, False),
            (LendingStatus.OVERDUE, False),
            (LendingStatus.FULLY_PAID, True),
            (LendingStatus.DEFAULTED, True),
        ],
    )
    def test_is_terminal(self, status: LendingStatus, terminal: bool) -> None:
        assert status.is_terminal is terminal


class TestAccrualPolicy:
    """Tests for AccrualPolicy enum."""

    def test_lookup_by_value(self) -> None:
        assert AccrualPolicy("CAPPED_AT_DUE") is AccrualPolicy.CAPPED_AT_DUE


class TestLending:
    """Tests for Lending model."""

    def test_defaults(self, sample_lending: Lending) -> None:
        assert sample_lending.status == LendingStatus.ACTIVE
        assert sample_lending.due_at is None
        assert sample_lending.settled_at is None

    def test_terms(self, sample_lending: Lending, sample_terms: LendingTerms) -> None:
        assert sample_lending.terms == sample_terms

    def test_terms_frozen(self, sample_terms: LendingTerms) -> None:
        with pytest.raises(AttributeError):
            sample_terms.principal = Decimal("1")  # type: ignore[misc]


class TestRepaymentAndAccount:
    """Tests for Repayment and Account models."""

    def test_repayment_creation(self) -> None:
        repayment = Repayment(
            repayment_id="rep-001",
            lending_id="lend-001",
            amount=Decimal("500"),
            repayment_date=date(2024, 3, 1),
        )

        assert repayment.notes is None
        assert repayment.account_id is None

    def test_account_default_currency(self) -> None:
        account = Account(account_id="acct-001", name="Savings", balance=Decimal("10"))

        assert account.currency == "USD"


class TestReconciliationResult:
    """Tests for ReconciliationResult."""

    def test_frozen(self) -> None:
        result = ReconciliationResult(
            principal=Decimal("1000"),
            interest_amount=Decimal("0.00"),
            total_with_interest=Decimal("1000.00"),
            total_repaid=Decimal("0.00"),
            remaining_amount=Decimal("1000.00"),
            elapsed_days=0,
            accrual_end=date(2024, 1, 1),
        )

        with pytest.raises(AttributeError):
            result.remaining_amount = Decimal("0")  # type: ignore[misc]
