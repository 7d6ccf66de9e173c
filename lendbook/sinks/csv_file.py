"""CSV export of lendings and repayments.

Money columns are computed with the reconciliation engine, so an export
shows exactly the balances the ledger reports for the same date.
"""

import csv
import io
import logging
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path

from lendbook.config import ReconciliationConfig
from lendbook.engine.interest import reconcile_lending
from lendbook.exceptions import SinkError
from lendbook.models import Lending, Repayment
from lendbook.store.ledger import LendingLedger

logger = logging.getLogger(__name__)

LENDING_HEADERS = [
    "ID",
    "Borrower Name",
    "Borrower Contact",
    "Borrower Email",
    "Amount",
    "Interest Rate (%)",
    "Interest Amount",
    "Total Amount Due",
    "Amount Repaid",
    "Outstanding Amount",
    "Lent Date",
    "Due Date",
    "Status",
    "Purpose",
    "Notes",
    "Account",
    "Repayments Count",
    "Created At",
    "Updated At",
]

REPAYMENT_HEADERS = [
    "ID",
    "Lending ID",
    "Borrower Name",
    "Amount",
    "Repayment Date",
    "Notes",
    "Account",
    "Created At",
]


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def lendings_to_csv(
    lendings: list[Lending],
    repayments: Mapping[str, list[Repayment]],
    as_of: date,
    config: ReconciliationConfig | None = None,
) -> str:
    """Render lendings as CSV text with reconciled balances.

    Parameters
    ----------
    lendings : list[Lending]
        Lendings to export.
    repayments : Mapping[str, list[Repayment]]
        Repayments keyed by lending id.
    as_of : date
        Date the balances are computed for.
    config : ReconciliationConfig | None
        Accrual policy to apply (default settings if omitted).
    """
    config = config or ReconciliationConfig()
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(LENDING_HEADERS)

    for lending in lendings:
        history = repayments.get(lending.lending_id, [])
        result = reconcile_lending(
            lending,
            history,
            as_of,
            policy=config.accrual_policy,
            days_per_year=config.days_per_year,
        )
        writer.writerow([
            _cell(lending.lending_id),
            _cell(lending.borrower_name),
            _cell(lending.borrower_contact),
            _cell(lending.borrower_email),
            _cell(result.principal),
            _cell(lending.annual_rate_percent),
            _cell(result.interest_amount),
            _cell(result.total_with_interest),
            _cell(result.total_repaid),
            _cell(result.remaining_amount),
            _cell(lending.lent_at),
            _cell(lending.due_at),
            lending.status.value,
            _cell(lending.purpose),
            _cell(lending.notes),
            _cell(lending.account_id),
            str(len(history)),
            _cell(lending.created_at),
            _cell(lending.updated_at),
        ])

    return buffer.getvalue()


def repayments_to_csv(repayments: list[Repayment], borrowers: Mapping[str, str] | None = None) -> str:
    """Render repayments as CSV text.

    ``borrowers`` maps lending ids to borrower names for the
    "Borrower Name" column.
    """
    borrowers = borrowers or {}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(REPAYMENT_HEADERS)

    for repayment in repayments:
        writer.writerow([
            _cell(repayment.repayment_id),
            _cell(repayment.lending_id),
            _cell(borrowers.get(repayment.lending_id)),
            _cell(repayment.amount),
            _cell(repayment.repayment_date),
            _cell(repayment.notes),
            _cell(repayment.account_id),
            _cell(repayment.created_at),
        ])

    return buffer.getvalue()


class CsvFileSink:
    """Write a ledger to ``lendings.csv`` and ``repayments.csv``."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._counts: dict[str, int] = {}

    def _write(self, filename: str, content: str) -> Path:
        file_path = self.output_dir / filename
        try:
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise SinkError(f"Failed to write {file_path}: {e}") from e
        return file_path

    def write_ledger(self, ledger: LendingLedger, as_of: date | None = None) -> None:
        """Export every lending and repayment in the ledger.

        Parameters
        ----------
        ledger : LendingLedger
            Source of records and accrual settings.
        as_of : date | None
            Balance date (default: the ledger clock).
        """
        as_of = as_of or ledger.clock()
        lendings, history = ledger.snapshot()
        lendings.sort(key=lambda lending: lending.lent_at, reverse=True)
        repayments = sorted(
            (r for rows in history.values() for r in rows),
            key=lambda r: r.repayment_date,
            reverse=True,
        )
        borrowers = {lending.lending_id: lending.borrower_name for lending in lendings}

        self._write("lendings.csv", lendings_to_csv(lendings, history, as_of, ledger.config))
        self._write("repayments.csv", repayments_to_csv(repayments, borrowers))

        self._counts["lendings"] = len(lendings)
        self._counts["repayments"] = len(repayments)

    def close(self) -> None:
        """Log a summary of what was written."""
        logger.info("CSV files written to: %s", self.output_dir)
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d rows", entity_type, count)
