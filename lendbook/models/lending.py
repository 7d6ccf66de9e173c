"""Lending models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from lendbook.models.enums import LendingStatus


@dataclass(frozen=True)
class LendingTerms:
    """Static terms of a lending, as consumed by the reconciliation engine."""

    principal: Decimal
    annual_rate_percent: Decimal  # Percentage per year (e.g., 12 for 12%)
    lent_at: date
    due_at: date | None = None


@dataclass
class Repayment:
    """A partial or full repayment received for a lending."""

    repayment_id: str
    lending_id: str
    amount: Decimal
    repayment_date: date
    notes: str | None = None
    account_id: str | None = None  # Account the repayment was deposited into
    created_at: datetime | None = None


@dataclass
class Lending:
    """Money lent to a borrower."""

    lending_id: str
    borrower_name: str
    principal: Decimal
    annual_rate_percent: Decimal
    lent_at: date
    due_at: date | None = None
    status: LendingStatus = LendingStatus.ACTIVE
    borrower_contact: str | None = None
    borrower_email: str | None = None
    purpose: str | None = None
    notes: str | None = None
    account_id: str | None = None  # Account the principal was drawn from
    settled_at: date | None = None  # Date the lending became FULLY_PAID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def terms(self) -> LendingTerms:
        return LendingTerms(
            principal=self.principal,
            annual_rate_percent=self.annual_rate_percent,
            lent_at=self.lent_at,
            due_at=self.due_at,
        )


@dataclass(frozen=True)
class ReconciliationResult:
    """Balance of a lending as of a reference date.

    Computed on every read and never persisted. All amounts are
    quantized to cents.
    """

    principal: Decimal
    interest_amount: Decimal
    total_with_interest: Decimal
    total_repaid: Decimal
    remaining_amount: Decimal
    elapsed_days: int
    accrual_end: date
