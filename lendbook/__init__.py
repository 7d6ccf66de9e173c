"""Lending tracker: interest accrual, repayment reconciliation and status lifecycle."""

__version__ = "0.1.0"
