"""Simple-interest accrual and repayment reconciliation for lendings.

Everything here is a pure function over its arguments: no I/O, no
clock, no shared state. Callers always pass the reference date
explicitly, so two calls with the same inputs return the same result
no matter where or when they run.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, DecimalException
from typing import Any

from lendbook.engine.money import HUNDRED, ZERO, quantize_cents, to_decimal
from lendbook.engine.status import parse_status
from lendbook.exceptions import ComputationError, InvalidTermsError
from lendbook.models.enums import AccrualPolicy, LendingStatus
from lendbook.models.lending import Lending, LendingTerms, ReconciliationResult, Repayment


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def repayment_amount(repayment: Repayment | Mapping[str, Any] | Any) -> Decimal:
    """Extract the amount of a repayment given as a model, mapping or bare number."""
    if isinstance(repayment, Repayment):
        raw = repayment.amount
    elif isinstance(repayment, Mapping):
        raw = repayment["amount"]
    else:
        raw = repayment
    return to_decimal(raw, "repayment amount")


def _repayment_date(repayment: Any) -> date | None:
    if isinstance(repayment, Repayment):
        return _as_date(repayment.repayment_date)
    if isinstance(repayment, Mapping) and repayment.get("repayment_date") is not None:
        return _as_date(repayment["repayment_date"])
    return None


def total_repaid(repayments: Iterable[Any]) -> Decimal:
    """Sum repayment amounts. Order does not matter; an empty list sums to zero."""
    return sum((repayment_amount(r) for r in repayments), ZERO)


def settlement_date(repayments: Iterable[Any], as_of: date) -> date:
    """Best estimate of when a fully paid lending was settled.

    The latest dated repayment wins. Without any dated repayment the
    reference date is used, which over-accrues for lendings marked paid
    without recorded repayments.
    """
    dates = [d for d in (_repayment_date(r) for r in repayments) if d is not None]
    return max(dates) if dates else as_of


def accrual_end_date(
    as_of: date,
    due_at: date | None,
    policy: AccrualPolicy = AccrualPolicy.AS_OF,
) -> date:
    """Last day of interest accrual for an unsettled lending under ``policy``."""
    if due_at is None or policy == AccrualPolicy.AS_OF:
        return as_of
    if policy == AccrualPolicy.CAPPED_AT_DUE:
        return min(as_of, due_at)
    return max(as_of, due_at)


def accrued_interest(
    principal: Decimal,
    annual_rate_percent: Decimal,
    elapsed_days: int,
    days_per_year: int = 365,
) -> Decimal:
    """Simple, non-compounding interest for ``elapsed_days`` days, rounded to cents."""
    if elapsed_days <= 0 or annual_rate_percent == 0:
        return quantize_cents(ZERO)
    try:
        interest = principal * annual_rate_percent / HUNDRED * Decimal(elapsed_days) / Decimal(days_per_year)
    except DecimalException as e:
        raise ComputationError(f"Interest computation failed: {e}") from e
    if not interest.is_finite():
        raise ComputationError("Interest computation produced a non-finite value")
    return quantize_cents(interest)


def validate_terms(principal: Any, annual_rate_percent: Any) -> tuple[Decimal, Decimal]:
    """Coerce and check principal and rate.

    Raises
    ------
    InvalidTermsError
        If principal is not positive or rate is negative, or either is
        non-finite.
    """
    try:
        principal_dec = to_decimal(principal, "principal")
        rate_dec = to_decimal(annual_rate_percent, "interest rate")
    except ComputationError as e:
        raise InvalidTermsError(f"invalid lending terms: {e}") from e

    if principal_dec <= 0:
        raise InvalidTermsError(f"invalid lending terms: principal must be positive, got {principal_dec}")
    if rate_dec < 0:
        raise InvalidTermsError(f"invalid lending terms: interest rate cannot be negative, got {rate_dec}")
    return principal_dec, rate_dec


def reconcile(
    terms: LendingTerms,
    repayments: Iterable[Any],
    as_of: date | datetime,
    current_status: LendingStatus | str | None = None,
    settled_at: date | None = None,
    policy: AccrualPolicy = AccrualPolicy.AS_OF,
    days_per_year: int = 365,
) -> ReconciliationResult:
    """Compute interest, total obligation and remaining balance of a lending.

    Parameters
    ----------
    terms : LendingTerms
        Principal, annual rate (percent), lent date and optional due date.
    repayments : Iterable
        ``Repayment`` objects, mappings with an ``amount`` key, or bare
        amounts. Treated as an unordered multiset.
    as_of : date | datetime
        Reference date for accrual. Required: there is no implicit "now".
    current_status : LendingStatus | str | None
        Last known status. When FULLY_PAID, accrual is frozen at the
        settlement date instead of running to ``as_of``.
    settled_at : date | None
        Known settlement date; defaults to the latest repayment date.
    policy : AccrualPolicy
        End-date policy for accrual, see ``accrual_end_date``.
    days_per_year : int
        Day-count basis.

    Returns
    -------
    ReconciliationResult
        Balance with ``remaining_amount`` never below zero.

    Raises
    ------
    InvalidTermsError
        Non-finite or non-positive principal, negative or non-finite rate.
    ComputationError
        Non-finite repayment amounts or arithmetic failures.
    """
    principal, rate = validate_terms(terms.principal, terms.annual_rate_percent)
    repayments = list(repayments)
    reference = _as_date(as_of)
    lent_at = _as_date(terms.lent_at)

    status = parse_status(current_status) if current_status is not None else None
    if status == LendingStatus.FULLY_PAID:
        settled = _as_date(settled_at) if settled_at is not None else settlement_date(repayments, reference)
        reference = min(reference, settled)

    accrual_end = accrual_end_date(reference, terms.due_at and _as_date(terms.due_at), policy)
    elapsed_days = max(0, (accrual_end - lent_at).days)

    interest_amount = accrued_interest(principal, rate, elapsed_days, days_per_year)
    total_with_interest = quantize_cents(principal + interest_amount)
    repaid = quantize_cents(total_repaid(repayments))
    remaining = max(ZERO, total_with_interest - repaid)

    return ReconciliationResult(
        principal=principal,
        interest_amount=interest_amount,
        total_with_interest=total_with_interest,
        total_repaid=repaid,
        remaining_amount=quantize_cents(remaining),
        elapsed_days=elapsed_days,
        accrual_end=accrual_end,
    )


def reconcile_lending(
    lending: Lending,
    repayments: Iterable[Any],
    as_of: date | datetime,
    policy: AccrualPolicy = AccrualPolicy.AS_OF,
    days_per_year: int = 365,
) -> ReconciliationResult:
    """Reconcile a persisted lending using its own status and settlement date."""
    return reconcile(
        lending.terms,
        repayments,
        as_of,
        current_status=lending.status,
        settled_at=lending.settled_at,
        policy=policy,
        days_per_year=days_per_year,
    )
