"""Decimal helpers shared by the accrual and status functions."""

from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import Any

from lendbook.exceptions import ComputationError

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any, label: str = "amount") -> Decimal:
    """Coerce a numeric value to a finite ``Decimal``.

    Floats go through ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises
    ------
    ComputationError
        If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ComputationError(f"Invalid {label}: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except DecimalException as e:
            raise ComputationError(f"Invalid {label}: {value!r}") from e
    else:
        raise ComputationError(f"Invalid {label}: {value!r}")

    if not result.is_finite():
        raise ComputationError(f"Non-finite {label}: {value!r}")
    return result


def quantize_cents(amount: Decimal) -> Decimal:
    """Round an amount to cents, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
