"""Lifecycle status derivation for lendings.

Status follows from amounts only. Overdue-ness depends on dates and is
applied separately by ``refresh_overdue``; defaulting is a manual
override (``mark_defaulted``) and is never undone automatically.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from lendbook.engine.money import to_decimal
from lendbook.exceptions import ComputationError
from lendbook.models.enums import LendingStatus
from lendbook.models.lending import ReconciliationResult

DEFAULT_TOLERANCE = Decimal("0.01")

_STATUS_ALIASES = {
    "ACTIVE": LendingStatus.ACTIVE,
    "PARTIALLYPAID": LendingStatus.PARTIALLY_PAID,
    "PARTIAL": LendingStatus.PARTIALLY_PAID,
    "FULLYPAID": LendingStatus.FULLY_PAID,
    "PAID": LendingStatus.FULLY_PAID,
    "OVERDUE": LendingStatus.OVERDUE,
    "DEFAULTED": LendingStatus.DEFAULTED,
    "DEFAULT": LendingStatus.DEFAULTED,
}


def parse_status(value: LendingStatus | str) -> LendingStatus:
    """Convert a status label to ``LendingStatus``.

    Accepts enum members, canonical values and loose spellings such as
    ``"partially paid"`` or ``"Fully-Paid"``.

    Raises
    ------
    ComputationError
        If the label does not name a known status.
    """
    if isinstance(value, LendingStatus):
        return value
    if isinstance(value, str):
        key = value.upper().replace(" ", "").replace("-", "").replace("_", "")
        if key in _STATUS_ALIASES:
            return _STATUS_ALIASES[key]
    raise ComputationError(f"Unknown lending status: {value!r}")


def derive_status(
    total_repaid: Any,
    total_with_interest: Any,
    previous_status: LendingStatus | str,
    tolerance: Any = DEFAULT_TOLERANCE,
) -> LendingStatus:
    """Determine a lending's status from what has been repaid.

    Rules are evaluated in order, first match wins:

    1. DEFAULTED stays DEFAULTED.
    2. Repaid within ``tolerance`` of the total -> FULLY_PAID.
    3. Anything beyond ``tolerance`` repaid -> PARTIALLY_PAID.
    4. OVERDUE with nothing repaid stays OVERDUE.
    5. Otherwise ACTIVE.

    Raises
    ------
    ComputationError
        On non-finite amounts or an unknown previous status.
    """
    previous = parse_status(previous_status)
    repaid = to_decimal(total_repaid, "total repaid")
    total = to_decimal(total_with_interest, "total with interest")
    eps = to_decimal(tolerance, "tolerance")

    if previous == LendingStatus.DEFAULTED:
        return LendingStatus.DEFAULTED
    if repaid >= total - eps:
        return LendingStatus.FULLY_PAID
    if repaid > eps:
        return LendingStatus.PARTIALLY_PAID
    if previous == LendingStatus.OVERDUE:
        return LendingStatus.OVERDUE
    return LendingStatus.ACTIVE


def status_for(
    result: ReconciliationResult,
    previous_status: LendingStatus | str,
    tolerance: Any = DEFAULT_TOLERANCE,
) -> LendingStatus:
    """Derive status straight from a reconciliation result."""
    return derive_status(result.total_repaid, result.total_with_interest, previous_status, tolerance)


def is_overdue(due_at: date | None, as_of: date) -> bool:
    """Whether the due date has passed as of ``as_of``."""
    return due_at is not None and due_at < as_of


def refresh_overdue(status: LendingStatus | str, due_at: date | None, as_of: date) -> LendingStatus:
    """Apply the date-driven transition to OVERDUE.

    Only ACTIVE and PARTIALLY_PAID lendings can become overdue; terminal
    and already-overdue lendings are returned unchanged.
    """
    current = parse_status(status)
    if current in (LendingStatus.ACTIVE, LendingStatus.PARTIALLY_PAID) and is_overdue(due_at, as_of):
        return LendingStatus.OVERDUE
    return current


def mark_defaulted(status: LendingStatus | str) -> LendingStatus:
    """Manual override: any status may be written off as DEFAULTED."""
    parse_status(status)
    return LendingStatus.DEFAULTED
