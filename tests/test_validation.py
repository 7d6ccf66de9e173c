"""Tests for lending form and repayment validation."""

from datetime import date
from decimal import Decimal

import pytest

from lendbook.exceptions import OverpaymentRejected, ValidationError
from lendbook.validation import (
    LendingForm,
    check_repayment,
    parse_date,
    sanitize_form,
    validate_lending_form,
    validate_repayment_amount,
)

TODAY = date(2024, 7, 1)


def _form(**overrides) -> LendingForm:
    values = {
        "borrower_name": "Jane Doe",
        "amount": "1000",
        "interest_rate": "12",
        "lent_date": "2024-01-01",
    }
    values.update(overrides)
    return LendingForm(**values)


def _messages(form: LendingForm) -> dict[str, str]:
    return {e.field: e.message for e in validate_lending_form(form, TODAY).errors}


class TestValidateLendingForm:
    """Tests for validate_lending_form."""

    def test_valid(self) -> None:
        assert validate_lending_form(_form(), TODAY).is_valid

    def test_valid_with_optional_fields(self) -> None:
        form = _form(
            due_date="2024-12-31",
            borrower_email="jane@example.com",
            borrower_contact="+1 (555) 123-4567",
        )

        assert validate_lending_form(form, TODAY).is_valid

    @pytest.mark.parametrize(
        "name,message",
        [
            ("", "Borrower name is required"),
            ("J", "Borrower name must be at least 2 characters long"),
            ("J" * 101, "Borrower name cannot exceed 100 characters"),
        ],
    )
    def test_borrower_name(self, name: str, message: str) -> None:
        assert _messages(_form(borrower_name=name))["borrower_name"] == message

    @pytest.mark.parametrize(
        "amount,message",
        [
            ("abc", "Please enter a valid amount"),
            ("0", "Amount must be greater than 0"),
            ("-5", "Amount must be greater than 0"),
            ("1000000000", "Amount is too large (maximum: 999,999,999.99)"),
            ("10.123", "Amount cannot have more than 2 decimal places"),
        ],
    )
    def test_amount(self, amount: str, message: str) -> None:
        assert _messages(_form(amount=amount))["amount"] == message

    @pytest.mark.parametrize(
        "rate,message",
        [
            ("x", "Please enter a valid interest rate"),
            ("-1", "Interest rate cannot be negative"),
            ("101", "Interest rate cannot exceed 100%"),
        ],
    )
    def test_interest_rate(self, rate: str, message: str) -> None:
        assert _messages(_form(interest_rate=rate))["interest_rate"] == message

    def test_invalid_email(self) -> None:
        assert "borrower_email" in _messages(_form(borrower_email="not-an-email"))

    def test_invalid_phone(self) -> None:
        assert "borrower_contact" in _messages(_form(borrower_contact="call me"))

    def test_lent_date_required(self) -> None:
        assert _messages(_form(lent_date=""))["lent_date"] == "Lent date is required"

    def test_lent_date_in_future(self) -> None:
        assert _messages(_form(lent_date="2024-07-02"))["lent_date"] == "Lent date cannot be in the future"

    def test_lent_date_malformed(self) -> None:
        assert _messages(_form(lent_date="01/02/2024"))["lent_date"] == "Please enter a valid lent date"

    def test_due_date_before_lent_date(self) -> None:
        errors = _messages(_form(due_date="2024-01-01"))

        assert errors["due_date"] == "Due date must be after the lent date"

    def test_collects_all_errors(self) -> None:
        errors = _messages(_form(borrower_name="", amount="0", interest_rate="-1"))

        assert set(errors) == {"borrower_name", "amount", "interest_rate"}

    def test_raise_if_invalid(self) -> None:
        result = validate_lending_form(_form(amount="0"), TODAY)

        with pytest.raises(ValidationError) as exc_info:
            result.raise_if_invalid("Invalid lending")

        assert str(exc_info.value) == "Invalid lending"
        assert exc_info.value.errors[0].field == "amount"


class TestSanitizeForm:
    """Tests for sanitize_form."""

    def test_strips_text(self) -> None:
        form = sanitize_form(_form(borrower_name="  Jane  ", notes=" hi ", purpose=None))

        assert form.borrower_name == "Jane"
        assert form.notes == "hi"
        assert form.purpose == ""

    def test_original_untouched(self) -> None:
        original = _form(borrower_name="  Jane  ")
        sanitize_form(original)

        assert original.borrower_name == "  Jane  "


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_string(self) -> None:
        assert parse_date("2024-03-15") == date(2024, 3, 15)

    def test_iso_timestamp(self) -> None:
        assert parse_date("2024-03-15T10:00:00Z") == date(2024, 3, 15)

    def test_empty(self) -> None:
        assert parse_date("  ") is None
        assert parse_date(None) is None

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_date("15/03/2024")


class TestCheckRepayment:
    """Tests for proposed repayment validation."""

    def test_accepts_exact_remaining(self) -> None:
        assert check_repayment("559.84", Decimal("559.84")) == Decimal("559.84")

    def test_accepts_within_tolerance(self) -> None:
        assert check_repayment("559.85", Decimal("559.84")) == Decimal("559.85")

    def test_rejects_beyond_tolerance(self) -> None:
        with pytest.raises(OverpaymentRejected) as exc_info:
            check_repayment(Decimal("559.86"), Decimal("559.84"))

        err = exc_info.value
        assert str(err) == "Repayment amount cannot exceed remaining balance of $559.84"
        assert err.amount == Decimal("559.86")
        assert err.remaining == Decimal("559.84")

    def test_message_uses_currency(self) -> None:
        with pytest.raises(OverpaymentRejected, match="₹100.00"):
            check_repayment("200", "100", currency="INR")

    @pytest.mark.parametrize("amount", ["0", "-1", "abc", "1.234"])
    def test_invalid_amounts(self, amount: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            check_repayment(amount, Decimal("100"))

        assert not isinstance(exc_info.value, OverpaymentRejected)

    def test_non_raising_variant(self) -> None:
        assert validate_repayment_amount("10", "100").is_valid

        result = validate_repayment_amount("200", "100")
        assert not result.is_valid
        assert result.errors[0].field == "amount"
