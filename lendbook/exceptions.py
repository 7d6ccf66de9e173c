"""Custom exception hierarchy for lendbook."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


class LendbookError(Exception):
    """Base exception for all lendbook errors."""


class ComputationError(LendbookError):
    """Raised when a money computation receives or produces a non-finite value."""


class InvalidTermsError(ComputationError):
    """Raised when lending terms cannot be reconciled (bad principal or rate)."""


@dataclass
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str


class ValidationError(LendbookError):
    """Raised when user input fails validation."""

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class OverpaymentRejected(ValidationError):
    """Raised when a proposed repayment exceeds the remaining balance."""

    def __init__(self, message: str, amount: Decimal, remaining: Decimal) -> None:
        super().__init__(message, [FieldError("amount", message)])
        self.amount = amount
        self.remaining = remaining


class EntityNotFoundError(LendbookError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(LendbookError):
    """Raised when an entity is in an invalid state for the operation."""


class InsufficientFundsError(InvalidEntityStateError):
    """Raised when a source account cannot cover the amount lent."""


class ConfigurationError(LendbookError):
    """Raised when configuration is invalid or missing."""


class SinkError(LendbookError):
    """Raised when a sink operation fails."""
