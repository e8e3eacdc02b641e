"""Exception hierarchy for the exporter."""

from typing import Any


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ExporterError):
    """Invalid configuration value."""


class StoreError(ExporterError):
    """Base class for backing store failures."""


class StoreConnectionError(StoreError):
    """The backing store could not be reached.

    Only raised while opening or pinging the store at startup.
    """


class QueryError(StoreError):
    """A read query against the backing store failed.

    Attributes:
        query: Name of the query that failed (e.g., "count_reports").
    """

    def __init__(self, query: str, message: str) -> None:
        super().__init__(f"{query}: {message}")
        self.query = query


class RowScanError(QueryError):
    """A row returned by a query could not be decoded.

    Attributes:
        query: Name of the query that produced the row.
        column: Column that could not be decoded.
        value: The raw value found in the column.
    """

    def __init__(self, query: str, column: str, value: Any) -> None:
        super().__init__(query, f"cannot decode column {column!r} (value={value!r})")
        self.column = column
        self.value = value
