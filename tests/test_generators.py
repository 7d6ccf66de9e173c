"""Tests for sample data generators."""

from datetime import date
from decimal import Decimal

from lendbook.config import ReconciliationConfig
from lendbook.generators import AccountGenerator, LendingGenerator
from lendbook.models import LendingStatus
from lendbook.store import LendingLedger

TODAY = date(2024, 7, 1)


def _ledger() -> LendingLedger:
    return LendingLedger(config=ReconciliationConfig(), clock=lambda: TODAY)


class TestAccountGenerator:
    """Tests for AccountGenerator."""

    def test_generate(self, seed: int) -> None:
        account = AccountGenerator(seed=seed).generate(min_balance=100, max_balance=200)

        assert Decimal("100") <= account.balance <= Decimal("200")
        assert account.name.split()[-1].isdigit()
        assert account.currency == "USD"


class TestLendingGenerator:
    """Tests for LendingGenerator."""

    def test_generate(self, seed: int) -> None:
        lending = LendingGenerator(seed=seed).generate(TODAY)

        assert lending.lent_at < TODAY
        assert lending.principal > 0
        assert lending.annual_rate_percent in [Decimal(r) for r in LendingGenerator.RATES]
        assert lending.status == LendingStatus.ACTIVE
        if lending.due_at is not None:
            assert lending.due_at > lending.lent_at

    def test_reproducible(self, seed: int) -> None:
        first = LendingGenerator(seed=seed).generate(TODAY)
        second = LendingGenerator(seed=seed).generate(TODAY)

        assert first.borrower_name == second.borrower_name
        assert first.principal == second.principal
        assert first.lent_at == second.lent_at

    def test_populate(self, seed: int) -> None:
        ledger = _ledger()

        lendings = LendingGenerator(seed=seed).populate(ledger, num_lendings=30, num_accounts=3)

        assert len(lendings) == 30
        assert len(ledger.lendings) == 30
        assert len(ledger.accounts) == 3
        assert all(a.balance >= 0 for a in ledger.accounts.values())

    def test_populated_statuses_are_consistent(self, seed: int) -> None:
        ledger = _ledger()
        LendingGenerator(seed=seed).populate(ledger, num_lendings=40)

        for lending in ledger.lendings.values():
            result = ledger.reconcile(lending.lending_id)
            repayments = ledger.get_lending_repayments(lending.lending_id)
            assert all(r.repayment_date <= TODAY for r in repayments)
            if lending.status == LendingStatus.FULLY_PAID:
                assert result.remaining_amount <= Decimal("0.01")
                assert lending.settled_at is not None
            elif repayments:
                assert lending.status in (LendingStatus.PARTIALLY_PAID, LendingStatus.OVERDUE)
            if lending.due_at and lending.due_at < TODAY and not lending.status.is_terminal:
                assert lending.status == LendingStatus.OVERDUE
