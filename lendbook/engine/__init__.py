"""Interest accrual, reconciliation and status derivation."""

from lendbook.engine.interest import (
    accrual_end_date,
    accrued_interest,
    reconcile,
    reconcile_lending,
    settlement_date,
    total_repaid,
    validate_terms,
)
from lendbook.engine.money import quantize_cents, to_decimal
from lendbook.engine.status import (
    derive_status,
    is_overdue,
    mark_defaulted,
    parse_status,
    refresh_overdue,
    status_for,
)

__all__ = [
    "accrual_end_date",
    "accrued_interest",
    "derive_status",
    "is_overdue",
    "mark_defaulted",
    "parse_status",
    "quantize_cents",
    "reconcile",
    "reconcile_lending",
    "refresh_overdue",
    "settlement_date",
    "status_for",
    "to_decimal",
    "total_repaid",
    "validate_terms",
]
