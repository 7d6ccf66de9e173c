"""Importers for reading lendings and repayments back into a ledger."""

from lendbook.importers.csv_file import (
    ImportResult,
    import_lendings,
    import_repayments,
    parse_lendings_csv,
    parse_repayments_csv,
)

__all__ = [
    "ImportResult",
    "import_lendings",
    "import_repayments",
    "parse_lendings_csv",
    "parse_repayments_csv",
]
