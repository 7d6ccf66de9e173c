"""Output sinks for exporting ledger data."""

from lendbook.sinks.csv_file import CsvFileSink
from lendbook.sinks.json_file import JsonFileSink
from lendbook.sinks.postgres import PostgresSink

__all__ = ["CsvFileSink", "JsonFileSink", "PostgresSink"]
