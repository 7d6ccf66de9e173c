"""CSV import of lendings and repayments.

Files use the same headers as the CSV export. Headers are matched
loosely: case, spaces and punctuation are ignored, so "Interest Rate (%)",
"interest_rate" and "InterestRate" all name the same column.

Parsing never stops at the first bad row. Each row either becomes a record
or an error of the form ``"Row N: ..."``, where N is the line number in the
file (the header is row 1).
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Generic, TypeVar

from lendbook.engine.money import to_decimal
from lendbook.engine.status import parse_status
from lendbook.exceptions import ComputationError, LendbookError, ValidationError
from lendbook.models import Lending, LendingStatus, Repayment
from lendbook.store.ledger import LendingLedger
from lendbook.validation import LendingForm, parse_date, validate_lending_form

logger = logging.getLogger(__name__)

T = TypeVar("T")

LENDING_REQUIRED = ["borrowername", "amount", "interestrate", "lentdate"]
REPAYMENT_REQUIRED = ["lendingid", "amount", "repaymentdate"]

# Older exports name the lending column "Debt ID"
_HEADER_ALIASES = {"debtid": "lendingid", "debtborrower": "borrowername"}

_HEADER_STRIP = re.compile(r"[\s\-_/()%]")


def normalize_header(header: str) -> str:
    """Lower-case a header and drop whitespace and punctuation."""
    key = _HEADER_STRIP.sub("", header.lower())
    return _HEADER_ALIASES.get(key, key)


@dataclass
class ImportResult(Generic[T]):
    """Records parsed or imported, plus one message per rejected row."""

    records: list[T] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def reject(self, row: int, message: str) -> None:
        self.errors.append(f"Row {row}: {message}")


@dataclass
class ParsedLending:
    """A lending row that passed validation."""

    row: int
    source_id: str | None
    form: LendingForm


@dataclass
class ParsedRepayment:
    """A repayment row that passed validation."""

    row: int
    lending_id: str
    amount: Decimal
    repayment_date: date
    notes: str | None = None
    account_id: str | None = None


def _read_rows(content: str, required: list[str]) -> list[tuple[int, dict[str, str]]]:
    """Read CSV text into (row number, dict keyed by normalized header) pairs.

    Raises
    ------
    ValidationError
        If the file is empty or a required column is missing.
    """
    reader = csv.reader(io.StringIO(content.lstrip("\ufeff")))
    try:
        headers = [normalize_header(h) for h in next(reader)]
    except StopIteration:
        raise ValidationError("CSV file is empty") from None

    missing = [name for name in required if name not in headers]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    rows = []
    for line, values in enumerate(reader, start=2):
        if not any(v.strip() for v in values):
            continue
        rows.append((line, {h: (values[i].strip() if i < len(values) else "") for i, h in enumerate(headers)}))
    return rows


def _status_or_active(value: str) -> LendingStatus:
    """Unrecognized status labels import as ACTIVE."""
    if not value:
        return LendingStatus.ACTIVE
    try:
        return parse_status(value)
    except ComputationError:
        logger.warning("Unknown status %r imported as ACTIVE", value)
        return LendingStatus.ACTIVE


def parse_lendings_csv(content: str, today: date) -> ImportResult[ParsedLending]:
    """Parse a lendings CSV into validated forms.

    Parameters
    ----------
    content : str
        CSV text with a header row.
    today : date
        Reference date for the "lent date cannot be in the future" rule.

    Raises
    ------
    ValidationError
        If the file is empty or lacks a required column.
    """
    result: ImportResult[ParsedLending] = ImportResult()

    for line, row in _read_rows(content, LENDING_REQUIRED):
        form = LendingForm(
            borrower_name=row.get("borrowername", ""),
            amount=row.get("amount", ""),
            interest_rate=row.get("interestrate", ""),
            lent_date=row.get("lentdate", ""),
            due_date=row.get("duedate") or None,
            status=_status_or_active(row.get("status", "")),
            borrower_contact=row.get("borrowercontact", ""),
            borrower_email=row.get("borroweremail", ""),
            purpose=row.get("purpose", ""),
            notes=row.get("notes", ""),
            account_id=row.get("account") or None,
        )
        validation = validate_lending_form(form, today)
        if not validation.is_valid:
            result.reject(line, "; ".join(error.message for error in validation.errors))
            continue
        result.records.append(ParsedLending(line, row.get("id") or None, form))

    return result


def parse_repayments_csv(content: str) -> ImportResult[ParsedRepayment]:
    """Parse a repayments CSV.

    Raises
    ------
    ValidationError
        If the file is empty or lacks a required column.
    """
    result: ImportResult[ParsedRepayment] = ImportResult()

    for line, row in _read_rows(content, REPAYMENT_REQUIRED):
        lending_id = row.get("lendingid", "")
        if not lending_id:
            result.reject(line, "Lending ID is required")
            continue

        try:
            amount = to_decimal(row.get("amount", ""), "amount")
        except ComputationError:
            result.reject(line, "Invalid amount")
            continue
        if amount <= 0:
            result.reject(line, "Amount must be greater than 0")
            continue

        try:
            repayment_date = parse_date(row.get("repaymentdate", ""))
        except ValueError:
            repayment_date = None
        if repayment_date is None:
            result.reject(line, "Invalid repayment date")
            continue

        result.records.append(
            ParsedRepayment(
                row=line,
                lending_id=lending_id,
                amount=amount,
                repayment_date=repayment_date,
                notes=row.get("notes") or None,
                account_id=row.get("account") or row.get("accountid") or None,
            )
        )

    return result


def import_lendings(ledger: LendingLedger, content: str) -> tuple[ImportResult[Lending], dict[str, str]]:
    """Parse a lendings CSV and record each valid row in the ledger.

    Rows the ledger rejects (for example for insufficient funds) are
    reported as row errors; the other rows are still imported.

    Returns
    -------
    tuple[ImportResult[Lending], dict[str, str]]
        Created lendings with row errors, and a map from the file's
        lending ids to the new ledger ids.
    """
    parsed = parse_lendings_csv(content, ledger.clock())
    result: ImportResult[Lending] = ImportResult(errors=list(parsed.errors))
    id_map: dict[str, str] = {}

    for item in parsed.records:
        try:
            lending = ledger.create_lending_from_form(item.form)
        except LendbookError as e:
            result.reject(item.row, str(e))
            continue
        result.records.append(lending)
        if item.source_id:
            id_map[item.source_id] = lending.lending_id

    logger.info("Imported %d lending(s), %d row error(s)", len(result.records), len(result.errors))
    return result, id_map


def import_repayments(
    ledger: LendingLedger,
    content: str,
    id_map: dict[str, Any] | None = None,
) -> ImportResult[Repayment]:
    """Parse a repayments CSV and record each valid row in the ledger.

    Lending ids are looked up in ``id_map`` first, so a repayments file can
    be imported right after the lendings file it was exported with.
    Repayments are applied in date order so statuses settle as they did
    originally.
    """
    id_map = id_map or {}
    parsed = parse_repayments_csv(content)
    result: ImportResult[Repayment] = ImportResult(errors=list(parsed.errors))

    for item in sorted(parsed.records, key=lambda r: (r.repayment_date, r.row)):
        try:
            repayment = ledger.add_repayment(
                id_map.get(item.lending_id, item.lending_id),
                item.amount,
                notes=item.notes,
                account_id=item.account_id,
                repayment_date=item.repayment_date,
            )
        except LendbookError as e:
            result.reject(item.row, str(e))
            continue
        result.records.append(repayment)

    logger.info("Imported %d repayment(s), %d row error(s)", len(result.records), len(result.errors))
    return result
