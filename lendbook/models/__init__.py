"""Domain models for lending tracking."""

from lendbook.models.account import Account
from lendbook.models.enums import AccrualPolicy, LendingStatus
from lendbook.models.lending import Lending, LendingTerms, ReconciliationResult, Repayment

__all__ = [
    "Account",
    "AccrualPolicy",
    "Lending",
    "LendingStatus",
    "LendingTerms",
    "ReconciliationResult",
    "Repayment",
]
