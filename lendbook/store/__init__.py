"""In-memory ledger keeping lendings, repayments and account balances consistent."""

from lendbook.store.ledger import LendingLedger

__all__ = ["LendingLedger"]
