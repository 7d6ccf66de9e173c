"""Input validation for lending forms and proposed repayments."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from lendbook.engine.money import quantize_cents, to_decimal
from lendbook.engine.status import DEFAULT_TOLERANCE
from lendbook.exceptions import ComputationError, FieldError, OverpaymentRejected, ValidationError
from lendbook.formatting import format_currency
from lendbook.models.enums import LendingStatus

logger = logging.getLogger(__name__)

MAX_AMOUNT = Decimal("999999999.99")
MAX_RATE_PERCENT = Decimal("100")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")


@dataclass
class LendingForm:
    """Raw lending input as entered by a user or read from an import."""

    borrower_name: str
    amount: Any
    interest_rate: Any
    lent_date: date | str | None
    due_date: date | str | None = None
    status: LendingStatus = LendingStatus.ACTIVE
    borrower_contact: str = ""
    borrower_email: str = ""
    purpose: str = ""
    notes: str = ""
    account_id: str | None = None


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""

    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.append(FieldError(field_name, message))

    def raise_if_invalid(self, message: str = "Validation failed") -> None:
        if self.errors:
            raise ValidationError(message, list(self.errors))


def parse_date(value: date | str | None) -> date | None:
    """Parse ``YYYY-MM-DD`` (or a date/datetime); empty values give ``None``.

    Raises
    ------
    ValueError
        If the string is not an ISO date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def _has_more_than_two_decimals(value: Decimal) -> bool:
    return value != value.quantize(Decimal("0.01"))


def _check_amount(result: ValidationResult, raw: Any, label: str = "Amount") -> Decimal | None:
    try:
        amount = to_decimal(raw, "amount")
    except ComputationError:
        result.add("amount", "Please enter a valid amount")
        return None
    if amount <= 0:
        result.add("amount", f"{label} must be greater than 0")
    elif amount > MAX_AMOUNT:
        result.add("amount", f"{label} is too large (maximum: {MAX_AMOUNT:,})")
    elif _has_more_than_two_decimals(amount):
        result.add("amount", f"{label} cannot have more than 2 decimal places")
    else:
        return amount
    return None


def validate_lending_form(form: LendingForm, today: date) -> ValidationResult:
    """Check a lending form field by field.

    Parameters
    ----------
    form : LendingForm
        The submitted values.
    today : date
        Reference date for the "lent date cannot be in the future" rule.

    Returns
    -------
    ValidationResult
        All field errors found; empty when the form is valid.
    """
    result = ValidationResult()

    name = (form.borrower_name or "").strip()
    if not name:
        result.add("borrower_name", "Borrower name is required")
    elif len(name) < 2:
        result.add("borrower_name", "Borrower name must be at least 2 characters long")
    elif len(name) > 100:
        result.add("borrower_name", "Borrower name cannot exceed 100 characters")

    _check_amount(result, form.amount)

    try:
        rate = to_decimal(form.interest_rate, "interest rate")
    except ComputationError:
        result.add("interest_rate", "Please enter a valid interest rate")
    else:
        if rate < 0:
            result.add("interest_rate", "Interest rate cannot be negative")
        elif rate > MAX_RATE_PERCENT:
            result.add("interest_rate", "Interest rate cannot exceed 100%")

    email = (form.borrower_email or "").strip()
    if email and not EMAIL_PATTERN.match(email):
        result.add("borrower_email", "Please enter a valid email address")

    contact = (form.borrower_contact or "").strip()
    if contact and not PHONE_PATTERN.match(re.sub(r"[\s\-()]", "", contact)):
        result.add("borrower_contact", "Please enter a valid phone number")

    lent_date: date | None = None
    try:
        lent_date = parse_date(form.lent_date)
    except ValueError:
        result.add("lent_date", "Please enter a valid lent date")
    else:
        if lent_date is None:
            result.add("lent_date", "Lent date is required")
        elif lent_date > today:
            result.add("lent_date", "Lent date cannot be in the future")

    try:
        due_date = parse_date(form.due_date)
    except ValueError:
        result.add("due_date", "Please enter a valid due date")
    else:
        if due_date is not None and lent_date is not None and due_date <= lent_date:
            result.add("due_date", "Due date must be after the lent date")

    if form.purpose and len(form.purpose) > 500:
        result.add("purpose", "Purpose cannot exceed 500 characters")
    if form.notes and len(form.notes) > 1000:
        result.add("notes", "Notes cannot exceed 1000 characters")

    return result


def sanitize_form(form: LendingForm) -> LendingForm:
    """Return a copy of the form with surrounding whitespace stripped from text fields."""
    return replace(
        form,
        borrower_name=(form.borrower_name or "").strip(),
        borrower_contact=(form.borrower_contact or "").strip(),
        borrower_email=(form.borrower_email or "").strip(),
        purpose=(form.purpose or "").strip(),
        notes=(form.notes or "").strip(),
    )


def check_repayment(
    amount: Any,
    remaining: Any,
    tolerance: Any = DEFAULT_TOLERANCE,
    currency: str = "USD",
) -> Decimal:
    """Validate a proposed repayment and return it as a ``Decimal``.

    The amount may exceed ``remaining`` by at most ``tolerance``.

    Raises
    ------
    OverpaymentRejected
        If the amount exceeds the remaining balance beyond ``tolerance``.
    ValidationError
        If the amount is otherwise invalid (non-positive, too large, too
        many decimal places).
    """
    result = ValidationResult()
    value = _check_amount(result, amount, label="Repayment amount")
    if value is None:
        raise ValidationError(result.errors[0].message, list(result.errors))

    remaining_dec = quantize_cents(to_decimal(remaining, "remaining amount"))
    if value - remaining_dec > to_decimal(tolerance, "tolerance"):
        message = f"Repayment amount cannot exceed remaining balance of {format_currency(remaining_dec, currency)}"
        logger.warning("Rejected repayment of %s: %s", value, message)
        raise OverpaymentRejected(message, amount=value, remaining=remaining_dec)
    return value


def validate_repayment_amount(
    amount: Any,
    remaining: Any,
    tolerance: Any = DEFAULT_TOLERANCE,
    currency: str = "USD",
) -> ValidationResult:
    """Non-raising form of ``check_repayment`` for form feedback."""
    try:
        check_repayment(amount, remaining, tolerance, currency)
    except ValidationError as e:
        return ValidationResult(errors=list(e.errors))
    return ValidationResult()
