#!/usr/bin/env python3
"""Generate a sample lending ledger and export it.

Accounts, lendings and repayments are generated with Faker, recorded
through the ledger (so balances and statuses follow the usual rules) and
written as JSON and CSV. Optionally the result is loaded into PostgreSQL.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lendbook.config import LendbookConfig
from lendbook.exceptions import LendbookError
from lendbook.formatting import format_currency
from lendbook.generators import LendingGenerator
from lendbook.logging import setup_logging
from lendbook.sinks import CsvFileSink, JsonFileSink, PostgresSink
from lendbook.store import LendingLedger

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--lendings", type=int, default=25, help="Number of lendings to generate")
    parser.add_argument("--accounts", type=int, default=2, help="Number of funding accounts")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides SEED)")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output directory (overrides OUTPUT_DIR)")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Reference date, YYYY-MM-DD")
    parser.add_argument("--postgres", action="store_true", help="Also load into PostgreSQL")
    parser.add_argument("--truncate", action="store_true", help="Truncate PostgreSQL tables first")
    return parser.parse_args(argv)


def write_files(ledger: LendingLedger, output_dir: Path, pretty: bool) -> None:
    """Write the ledger as JSON (one file per entity) and CSV."""
    json_sink = JsonFileSink(output_dir, pretty=pretty)
    json_sink.write_batch("accounts", list(ledger.accounts.values()))
    json_sink.write_batch("lendings", list(ledger.lendings.values()))
    json_sink.write_batch("lending_repayments", list(ledger.repayments.values()))
    json_sink.close()

    csv_sink = CsvFileSink(output_dir)
    csv_sink.write_ledger(ledger)
    csv_sink.close()


def load_postgres(ledger: LendingLedger, connection_string: str, truncate: bool) -> None:
    """Load the ledger into PostgreSQL in foreign-key order."""
    sink = PostgresSink(connection_string)
    try:
        sink.create_tables()
        if truncate:
            sink.truncate_tables()
        records = {
            "accounts": list(ledger.accounts.values()),
            "lendings": list(ledger.lendings.values()),
            "lending_repayments": list(ledger.repayments.values()),
        }
        for entity_type in PostgresSink.ENTITY_ORDER:
            sink.write_batch(entity_type, records[entity_type])
    finally:
        sink.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = LendbookConfig.from_env()
    except LendbookError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_format)

    seed = args.seed if args.seed is not None else config.seed
    output_dir = args.output_dir or config.output.output_dir
    as_of = args.as_of or date.today()

    ledger = LendingLedger(config=config.reconciliation, clock=lambda: as_of)
    LendingGenerator(seed=seed).populate(ledger, args.lendings, num_accounts=args.accounts)

    try:
        write_files(ledger, output_dir, config.output.pretty_json)
        if args.postgres:
            load_postgres(ledger, config.postgres.connection_string, args.truncate)
    except LendbookError as e:
        logger.error("Export failed: %s", e)
        return 1

    summary = ledger.summary()
    currency = config.reconciliation.currency
    print(f"\nLedger as of {as_of.isoformat()}")
    print(f"  Accounts:   {summary['accounts']}")
    print(f"  Lendings:   {summary['lendings']}")
    print(f"  Repayments: {summary['repayments']}")
    for status, count in summary["by_status"].items():
        print(f"    {status:<15} {count}")
    print(f"  Outstanding: {format_currency(summary['outstanding'], currency)}")
    print(f"\nFiles written to {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
