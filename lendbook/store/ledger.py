"""In-memory lending ledger with transactional balance updates.

Every mutating operation runs under one re-entrant lock and against a
snapshot of the ledger state: if any step fails, the snapshot is put
back so repayments, lending statuses and account balances always move
together. Two repayments against the same lending are therefore
validated one after the other, never against the same stale balance.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from lendbook.config import ReconciliationConfig
from lendbook.engine.interest import reconcile, reconcile_lending, validate_terms
from lendbook.engine.money import ZERO, to_decimal
from lendbook.engine.status import mark_defaulted, parse_status, refresh_overdue, status_for
from lendbook.exceptions import (
    EntityNotFoundError,
    InsufficientFundsError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
)
from lendbook.models import Account, Lending, LendingStatus, ReconciliationResult, Repayment
from lendbook.validation import LendingForm, check_repayment, parse_date, sanitize_form, validate_lending_form

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "borrower_name",
    "borrower_contact",
    "borrower_email",
    "purpose",
    "notes",
    "principal",
    "annual_rate_percent",
    "lent_at",
    "due_at",
})
TERM_FIELDS = frozenset({"principal", "annual_rate_percent", "lent_at", "due_at"})


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class LendingLedger:
    """Lendings, their repayments and the accounts that fund them.

    Mutations and the query methods share one reentrant lock, so readers
    never observe a half-applied or rolled-back operation.

    Parameters
    ----------
    config : ReconciliationConfig
        Tolerance, accrual policy and display currency.
    clock : Callable[[], date]
        Source of "today". Injected so tests can pin the date.
    """

    config: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    clock: Callable[[], date] = date.today

    accounts: dict[str, Account] = field(default_factory=dict)
    lendings: dict[str, Lending] = field(default_factory=dict)
    repayments: dict[str, Repayment] = field(default_factory=dict)

    # Relationship indexes
    _lending_repayments: dict[str, list[str]] = field(default_factory=dict)
    _account_lendings: dict[str, list[str]] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Serialize a mutation and roll back all state if it raises.

        Entities are restored in place, so references held by callers
        stay attached to the ledger after a rollback.
        """
        with self._lock:
            entities = [
                (container, dict(container), {key: dict(vars(obj)) for key, obj in container.items()})
                for container in (self.accounts, self.lendings, self.repayments)
            ]
            indexes = [
                (index, {key: list(ids) for key, ids in index.items()})
                for index in (self._lending_repayments, self._account_lendings)
            ]
            try:
                yield
            except Exception as e:
                logger.warning("Rolled back ledger operation: %s", e)
                for container, members, states in entities:
                    container.clear()
                    container.update(members)
                    for key, obj in members.items():
                        vars(obj).clear()
                        vars(obj).update(states[key])
                for index, saved in indexes:
                    index.clear()
                    index.update(saved)
                raise

    # Accounts
    def add_account(self, account: Account) -> None:
        """Add an account to the ledger."""
        with self._transaction():
            account.balance = to_decimal(account.balance, "account balance")
            if account.created_at is None:
                account.created_at = datetime.now()
            self.accounts[account.account_id] = account
            self._account_lendings.setdefault(account.account_id, [])
        logger.debug("Added account %s", account.account_id)

    def _require_account(self, account_id: str) -> Account:
        if account_id not in self.accounts:
            raise ReferentialIntegrityError(f"Account {account_id} not found")
        return self.accounts[account_id]

    def _adjust_balance(self, account_id: str, delta: Decimal) -> None:
        account = self._require_account(account_id)
        account.balance += delta
        account.updated_at = datetime.now()

    # Lendings
    def get_lending(self, lending_id: str) -> Lending:
        """Get a lending by id."""
        with self._lock:
            if lending_id not in self.lendings:
                raise EntityNotFoundError(f"Lending {lending_id} not found")
            return self.lendings[lending_id]

    def create_lending(self, lending: Lending) -> Lending:
        """Record a new lending, drawing the principal from its source account.

        Raises
        ------
        InvalidTermsError
            If the principal or rate cannot be reconciled.
        ReferentialIntegrityError
            If the source account does not exist.
        InsufficientFundsError
            If the source account balance is below the principal.
        """
        with self._transaction():
            lending.principal, lending.annual_rate_percent = validate_terms(
                lending.principal, lending.annual_rate_percent
            )
            lending.status = parse_status(lending.status)

            if lending.account_id:
                account = self._require_account(lending.account_id)
                if account.balance < lending.principal:
                    raise InsufficientFundsError(
                        f"Insufficient balance in {account.name}. "
                        f"Available: {account.balance}, Required: {lending.principal}"
                    )
                self._adjust_balance(lending.account_id, -lending.principal)
                self._account_lendings[lending.account_id].append(lending.lending_id)

            if lending.created_at is None:
                lending.created_at = datetime.now()
            self.lendings[lending.lending_id] = lending
            self._lending_repayments[lending.lending_id] = []

        logger.info(
            "Created lending %s: %s - %s",
            lending.lending_id,
            lending.borrower_name,
            lending.principal,
            extra={"extra": {"lending_id": lending.lending_id, "account_id": lending.account_id}},
        )
        return lending

    def create_lending_from_form(self, form: LendingForm) -> Lending:
        """Validate and sanitize a form, then record it as a new lending.

        Raises
        ------
        ValidationError
            With every field error found in the form.
        """
        validate_lending_form(form, today=self.clock()).raise_if_invalid("Invalid lending")
        form = sanitize_form(form)
        lending = Lending(
            lending_id=_new_id(),
            borrower_name=form.borrower_name,
            principal=to_decimal(form.amount, "amount"),
            annual_rate_percent=to_decimal(form.interest_rate, "interest rate"),
            lent_at=parse_date(form.lent_date),
            due_at=parse_date(form.due_date),
            status=form.status,
            borrower_contact=form.borrower_contact or None,
            borrower_email=form.borrower_email or None,
            purpose=form.purpose or None,
            notes=form.notes or None,
            account_id=form.account_id,
        )
        return self.create_lending(lending)

    def update_lending(self, lending_id: str, **changes: Any) -> Lending:
        """Update a lending's terms or details.

        A principal change moves the difference through the source
        account, and the status is re-derived against the new total.

        Raises
        ------
        InvalidEntityStateError
            If a field that cannot be updated is passed.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidEntityStateError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self._transaction():
            lending = self.get_lending(lending_id)
            old_principal = lending.principal

            for name, value in changes.items():
                setattr(lending, name, value)
            lending.principal, lending.annual_rate_percent = validate_terms(
                lending.principal, lending.annual_rate_percent
            )

            difference = lending.principal - old_principal
            if difference and lending.account_id:
                account = self._require_account(lending.account_id)
                if difference > 0 and account.balance < difference:
                    raise InsufficientFundsError(
                        f"Insufficient balance in {account.name} to increase lending by {difference}"
                    )
                self._adjust_balance(lending.account_id, -difference)

            if changes.keys() & TERM_FIELDS:
                self._rederive_status(lending)
            lending.updated_at = datetime.now()

        logger.info("Updated lending %s (%s)", lending_id, ", ".join(sorted(changes)))
        return lending

    def delete_lending(self, lending_id: str) -> None:
        """Delete a lending and its repayments, restoring the principal to its account."""
        with self._transaction():
            lending = self.get_lending(lending_id)
            for repayment_id in self._lending_repayments.pop(lending_id, []):
                del self.repayments[repayment_id]
            if lending.account_id:
                self._adjust_balance(lending.account_id, lending.principal)
                self._account_lendings[lending.account_id].remove(lending_id)
            del self.lendings[lending_id]

        logger.info("Deleted lending %s", lending_id)

    def mark_defaulted(self, lending_id: str) -> Lending:
        """Manually write a lending off as DEFAULTED."""
        with self._transaction():
            lending = self.get_lending(lending_id)
            lending.status = mark_defaulted(lending.status)
            lending.updated_at = datetime.now()
        logger.info("Lending %s marked as defaulted", lending_id)
        return lending

    def refresh_overdue(self, as_of: date | None = None) -> list[str]:
        """Move lendings whose due date has passed to OVERDUE.

        Returns
        -------
        list[str]
            Ids of lendings whose status changed.
        """
        as_of = as_of or self.clock()
        changed = []
        with self._transaction():
            for lending in self.lendings.values():
                new_status = refresh_overdue(lending.status, lending.due_at, as_of)
                if new_status != lending.status:
                    lending.status = new_status
                    lending.updated_at = datetime.now()
                    changed.append(lending.lending_id)
        if changed:
            logger.info("Marked %d lending(s) overdue as of %s", len(changed), as_of)
        return changed

    # Repayments
    def get_lending_repayments(self, lending_id: str) -> list[Repayment]:
        """Get all repayments for a lending."""
        with self._lock:
            self.get_lending(lending_id)
            return [self.repayments[rid] for rid in self._lending_repayments.get(lending_id, [])]

    def add_repayment(
        self,
        lending_id: str,
        amount: Any,
        notes: str | None = None,
        account_id: str | None = None,
        repayment_date: date | None = None,
    ) -> Repayment:
        """Record a repayment, re-derive the lending status and credit the account.

        Raises
        ------
        OverpaymentRejected
            If the amount exceeds the remaining balance beyond the tolerance.
        ValidationError
            If the amount is otherwise invalid.
        ReferentialIntegrityError
            If the deposit account does not exist.
        """
        today = self.clock()
        with self._transaction():
            lending = self.get_lending(lending_id)
            current = self.get_lending_repayments(lending_id)
            remaining = self.reconcile(lending_id, as_of=today).remaining_amount
            value = check_repayment(
                amount,
                remaining,
                tolerance=self.config.tolerance,
                currency=self.config.currency,
            )

            if account_id:
                self._require_account(account_id)

            repayment = Repayment(
                repayment_id=_new_id(),
                lending_id=lending_id,
                amount=value,
                repayment_date=repayment_date or today,
                notes=notes,
                account_id=account_id,
                created_at=datetime.now(),
            )
            self.repayments[repayment.repayment_id] = repayment
            self._lending_repayments[lending_id].append(repayment.repayment_id)

            self._rederive_status(lending, [*current, repayment], as_of=today)

            if account_id:
                self._adjust_balance(account_id, value)

        logger.info(
            "Repayment %s of %s recorded for lending %s (status %s)",
            repayment.repayment_id,
            value,
            lending_id,
            lending.status.value,
            extra={"extra": {"lending_id": lending_id, "repayment_id": repayment.repayment_id}},
        )
        return repayment

    def delete_repayment(self, repayment_id: str) -> None:
        """Remove a repayment, re-derive the status and debit the deposit account."""
        with self._transaction():
            if repayment_id not in self.repayments:
                raise EntityNotFoundError(f"Repayment {repayment_id} not found")
            repayment = self.repayments.pop(repayment_id)
            self._lending_repayments[repayment.lending_id].remove(repayment_id)

            lending = self.get_lending(repayment.lending_id)
            self._rederive_status(lending)

            if repayment.account_id:
                self._adjust_balance(repayment.account_id, -repayment.amount)

        logger.info("Deleted repayment %s from lending %s", repayment_id, repayment.lending_id)

    def _rederive_status(
        self,
        lending: Lending,
        repayments: list[Repayment] | None = None,
        as_of: date | None = None,
    ) -> None:
        """Recompute status and persist it if it changed.

        The balance is evaluated as of the latest repayment date: interest
        only grows with time, so a lending is fully paid if and only if its
        last repayment covered what was owed on that day.
        """
        if repayments is None:
            repayments = self.get_lending_repayments(lending.lending_id)
        as_of = max((r.repayment_date for r in repayments), default=as_of or self.clock())

        result = reconcile(
            lending.terms,
            repayments,
            as_of,
            policy=self.config.accrual_policy,
            days_per_year=self.config.days_per_year,
        )
        new_status = status_for(result, lending.status, self.config.tolerance)
        if new_status == lending.status:
            return

        if new_status == LendingStatus.FULLY_PAID:
            lending.settled_at = as_of
        elif lending.status == LendingStatus.FULLY_PAID:
            lending.settled_at = None

        logger.info(
            "Lending %s status %s -> %s",
            lending.lending_id,
            lending.status.value,
            new_status.value,
            extra={"extra": {"lending_id": lending.lending_id, "status": new_status.value}},
        )
        lending.status = new_status
        lending.updated_at = datetime.now()

    # Queries
    def reconcile(self, lending_id: str, as_of: date | None = None) -> ReconciliationResult:
        """Current balance of a lending as of ``as_of`` (default: the ledger clock)."""
        with self._lock:
            lending = self.get_lending(lending_id)
            return reconcile_lending(
                lending,
                self.get_lending_repayments(lending_id),
                as_of or self.clock(),
                policy=self.config.accrual_policy,
                days_per_year=self.config.days_per_year,
            )

    def get_account_lendings(self, account_id: str) -> list[Lending]:
        """Get all lendings funded from an account."""
        with self._lock:
            lending_ids = self._account_lendings.get(account_id, [])
            return [self.lendings[lid] for lid in lending_ids]

    def snapshot(self) -> tuple[list[Lending], dict[str, list[Repayment]]]:
        """All lendings and their repayment histories, read under one lock."""
        with self._lock:
            lendings = list(self.lendings.values())
            history = {
                lending.lending_id: [
                    self.repayments[rid]
                    for rid in self._lending_repayments.get(lending.lending_id, [])
                ]
                for lending in lendings
            }
            return lendings, history

    def summary(self, as_of: date | None = None) -> dict[str, Any]:
        """Counts per entity, lendings per status and the total outstanding balance."""
        as_of = as_of or self.clock()
        by_status = {status.value: 0 for status in LendingStatus}
        outstanding = ZERO
        with self._lock:
            for lending in self.lendings.values():
                by_status[lending.status.value] += 1
                outstanding += self.reconcile(lending.lending_id, as_of).remaining_amount
            return {
                "accounts": len(self.accounts),
                "lendings": len(self.lendings),
                "repayments": len(self.repayments),
                "by_status": by_status,
                "outstanding": outstanding,
            }
