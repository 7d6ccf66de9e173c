"""PostgreSQL sink for loading ledger records."""

import logging
from enum import Enum
from typing import Any

from lendbook.exceptions import SinkError

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id      VARCHAR(36) PRIMARY KEY,
    name            VARCHAR(200) NOT NULL,
    balance         NUMERIC(14, 2) NOT NULL,
    currency        VARCHAR(3) NOT NULL,
    created_at      TIMESTAMP,
    updated_at      TIMESTAMP
);

CREATE TABLE IF NOT EXISTS lendings (
    lending_id          VARCHAR(36) PRIMARY KEY,
    borrower_name       VARCHAR(200) NOT NULL,
    principal           NUMERIC(14, 2) NOT NULL CHECK (principal > 0),
    annual_rate_percent NUMERIC(7, 4) NOT NULL CHECK (annual_rate_percent >= 0),
    lent_at             DATE NOT NULL,
    due_at              DATE,
    status              VARCHAR(20) NOT NULL,
    borrower_contact    VARCHAR(50),
    borrower_email      VARCHAR(200),
    purpose             TEXT,
    notes               TEXT,
    account_id          VARCHAR(36) REFERENCES accounts(account_id),
    settled_at          DATE,
    created_at          TIMESTAMP,
    updated_at          TIMESTAMP
);

CREATE TABLE IF NOT EXISTS lending_repayments (
    repayment_id    VARCHAR(36) PRIMARY KEY,
    lending_id      VARCHAR(36) NOT NULL REFERENCES lendings(lending_id) ON DELETE CASCADE,
    amount          NUMERIC(14, 2) NOT NULL CHECK (amount > 0),
    repayment_date  DATE NOT NULL,
    notes           TEXT,
    account_id      VARCHAR(36) REFERENCES accounts(account_id),
    created_at      TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_lendings_status ON lendings(status);
CREATE INDEX IF NOT EXISTS idx_lending_repayments_lending ON lending_repayments(lending_id);
"""


class PostgresSink:
    """Write accounts, lendings and repayments to PostgreSQL."""

    TABLE_COLUMNS: dict[str, list[str]] = {
        "accounts": ["account_id", "name", "balance", "currency", "created_at", "updated_at"],
        "lendings": [
            "lending_id",
            "borrower_name",
            "principal",
            "annual_rate_percent",
            "lent_at",
            "due_at",
            "status",
            "borrower_contact",
            "borrower_email",
            "purpose",
            "notes",
            "account_id",
            "settled_at",
            "created_at",
            "updated_at",
        ],
        "lending_repayments": [
            "repayment_id",
            "lending_id",
            "amount",
            "repayment_date",
            "notes",
            "account_id",
            "created_at",
        ],
    }

    # Insert order that satisfies foreign keys
    ENTITY_ORDER = ["accounts", "lendings", "lending_repayments"]

    def __init__(self, connection_string: str) -> None:
        """Connect to PostgreSQL.

        Parameters
        ----------
        connection_string : str
            libpq connection URL.

        Raises
        ------
        ImportError
            If psycopg is not installed.
        """
        try:
            import psycopg
        except ImportError as e:
            raise ImportError(
                "psycopg is required for PostgresSink. Install with: pip install 'psycopg[binary]'"
            ) from e

        self.conn = psycopg.connect(connection_string)
        self._counts: dict[str, int] = {}

    def create_tables(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self.conn.cursor() as cur:
            cur.execute(DDL)
        self.conn.commit()
        logger.info("Tables created/verified")

    def truncate_tables(self) -> None:
        """Remove all rows, children first."""
        with self.conn.cursor() as cur:
            for table in reversed(self.ENTITY_ORDER):
                cur.execute(f"TRUNCATE TABLE {table} CASCADE")
        self.conn.commit()
        logger.info("Tables truncated")

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Insert a batch of records, replacing rows with the same key.

        Raises
        ------
        SinkError
            If the insert fails. The transaction is rolled back.
        """
        if not records:
            return
        if entity_type not in self.TABLE_COLUMNS:
            logger.warning("Unknown entity type %s, skipping %d records", entity_type, len(records))
            return

        columns = self.TABLE_COLUMNS[entity_type]
        key = columns[0]
        placeholders = ", ".join(["%s"] * len(columns))
        updates = ", ".join(f"{col} = EXCLUDED.{col}" for col in columns[1:])
        sql = (
            f"INSERT INTO {entity_type} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT ({key}) DO UPDATE SET {updates}"
        )
        rows = [self._row(record, columns) for record in records]

        try:
            with self.conn.cursor() as cur:
                cur.executemany(sql, rows)
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            raise SinkError(f"Failed to write {entity_type}: {e}") from e

        self._counts[entity_type] = self._counts.get(entity_type, 0) + len(records)
        logger.info("Wrote %d %s", len(records), entity_type)

    @staticmethod
    def _row(record: Any, columns: list[str]) -> tuple:
        data = record if isinstance(record, dict) else vars(record)
        values = []
        for col in columns:
            value = data.get(col)
            if isinstance(value, Enum):
                value = value.value
            values.append(value)
        return tuple(values)

    def close(self) -> None:
        """Close the connection and log a summary."""
        self.conn.close()
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d rows", entity_type, count)
