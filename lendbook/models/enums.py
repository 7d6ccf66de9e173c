"""Enumeration types for lending entities."""

from enum import Enum


class LendingStatus(str, Enum):
    """Lifecycle state of a lending.

    FULLY_PAID and DEFAULTED are terminal: no automatic transition
    leaves them. The remaining states are transient.
    """

    ACTIVE = "ACTIVE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FULLY_PAID = "FULLY_PAID"
    OVERDUE = "OVERDUE"
    DEFAULTED = "DEFAULTED"

    @property
    def is_terminal(self) -> bool:
        return self in (LendingStatus.FULLY_PAID, LendingStatus.DEFAULTED)


class AccrualPolicy(str, Enum):
    """End date used for interest accrual on unsettled lendings."""

    AS_OF = "AS_OF"  # lent_at .. as_of
    CAPPED_AT_DUE = "CAPPED_AT_DUE"  # lent_at .. min(as_of, due_at)
    FULL_TERM = "FULL_TERM"  # lent_at .. max(as_of, due_at)
