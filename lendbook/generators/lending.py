"""Sample account, lending and repayment generators."""

import random
from datetime import date, timedelta
from decimal import Decimal

from lendbook.engine.money import quantize_cents
from lendbook.generators.base import BaseGenerator
from lendbook.models import Account, Lending, Repayment
from lendbook.store.ledger import LendingLedger


class AccountGenerator(BaseGenerator):
    """Generate bank accounts with an opening balance."""

    BANK_NAMES = ["Chase", "Bank of America", "Wells Fargo", "Citi", "Capital One", "Ally"]

    def generate(self, min_balance: int = 5000, max_balance: int = 50000) -> Account:
        """Generate an account.

        Returns
        -------
        Account
            Account with a whole-dollar balance in the given range.
        """
        return Account(
            account_id=self.fake.uuid4(),
            name=f"{random.choice(self.BANK_NAMES)} {self.fake.numerify('####')}",
            balance=Decimal(random.randint(min_balance, max_balance)),
        )


class LendingGenerator(BaseGenerator):
    """Generate lendings to friends, family and colleagues, with repayment histories."""

    # Rates are annual percentages; informal lendings are often interest-free
    RATES = [0, 0, 0, 5, 8, 10, 12, 15, 18, 24]
    RATE_WEIGHTS = [0.15, 0.10, 0.05, 0.10, 0.10, 0.15, 0.15, 0.10, 0.05, 0.05]

    PURPOSES = [
        "Rent",
        "Medical bills",
        "Car repair",
        "Tuition",
        "Wedding",
        "Business startup",
        "Travel",
        "Emergency",
    ]

    # Repayment behaviour -> probability
    BEHAVIOURS = {"none": 0.30, "partial": 0.45, "full": 0.25}

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        super().__init__(seed, locale)
        self._account_gen = AccountGenerator(seed=seed, locale=locale)

    def generate(self, today: date, account_id: str | None = None) -> Lending:
        """Generate a lending made in the past two years.

        Parameters
        ----------
        today : date
            Reference date; the lent date is always before it.
        account_id : str | None
            Source account for the principal.

        Returns
        -------
        Lending
            An ACTIVE lending; about 70% have a due date.
        """
        lent_at = today - timedelta(days=random.randint(15, 720))
        due_at = lent_at + timedelta(days=random.randint(30, 365)) if random.random() < 0.7 else None
        rate = random.choices(self.RATES, weights=self.RATE_WEIGHTS, k=1)[0]

        return Lending(
            lending_id=self.fake.uuid4(),
            borrower_name=self.fake.name(),
            principal=Decimal(random.randint(2, 200) * 50),
            annual_rate_percent=Decimal(rate),
            lent_at=lent_at,
            due_at=due_at,
            borrower_contact=self.fake.msisdn() if random.random() < 0.6 else None,
            borrower_email=self.fake.email() if random.random() < 0.5 else None,
            purpose=random.choice(self.PURPOSES),
            account_id=account_id,
        )

    def populate(
        self,
        ledger: LendingLedger,
        num_lendings: int,
        num_accounts: int = 2,
    ) -> list[Lending]:
        """Fill a ledger with accounts, lendings and repayments.

        Repayments go through ``LendingLedger.add_repayment`` so statuses
        and balances follow the same rules as user-entered data.
        """
        today = ledger.clock()
        accounts = [self._account_gen.generate() for _ in range(num_accounts)]
        for account in accounts:
            ledger.add_account(account)

        lendings = []
        for _ in range(num_lendings):
            account = random.choice(accounts) if accounts and random.random() < 0.8 else None
            lending = self.generate(today, account.account_id if account else None)
            if account and account.balance < lending.principal:
                lending.account_id = None
            ledger.create_lending(lending)
            self._repay(ledger, lending, today)
            lendings.append(lending)

        ledger.refresh_overdue(today)
        return lendings

    def _repay(self, ledger: LendingLedger, lending: Lending, today: date) -> list[Repayment]:
        """Record a random repayment history for a lending."""
        behaviour = random.choices(
            list(self.BEHAVIOURS), weights=list(self.BEHAVIOURS.values()), k=1
        )[0]
        if behaviour == "none":
            return []

        span = (today - lending.lent_at).days
        offsets = sorted(random.sample(range(1, span + 1), k=min(span, random.randint(1, 3))))
        repayments = []

        for i, offset in enumerate(offsets):
            repayment_date = lending.lent_at + timedelta(days=offset)
            remaining = ledger.reconcile(lending.lending_id, as_of=repayment_date).remaining_amount
            is_last = i == len(offsets) - 1
            if behaviour == "full" and is_last:
                amount = remaining
            else:
                amount = quantize_cents(remaining * Decimal(str(round(random.uniform(0.1, 0.4), 2))))
            if amount <= 0:
                break
            repayments.append(
                ledger.add_repayment(
                    lending.lending_id,
                    amount,
                    notes=self.fake.sentence(nb_words=4) if random.random() < 0.3 else None,
                    account_id=lending.account_id,
                    repayment_date=repayment_date,
                )
            )
        return repayments
