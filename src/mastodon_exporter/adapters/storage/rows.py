"""Row decoding helpers shared by the storage adapters."""

import math
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from mastodon_exporter.core.errors import RowScanError
from mastodon_exporter.core.models import AccountCounts, ReportCounts


def scan_int(query: str, column: str, value: Any) -> int:
    """Decode a non-negative integer column.

    Raises:
        RowScanError: The value is NULL, not integral, or negative.
    """
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise RowScanError(query, column, value)
    if value < 0 or value != int(value):
        raise RowScanError(query, column, value)
    return int(value)


def scan_float(query: str, column: str, value: Any) -> float:
    """Decode a finite real-valued column.

    Raises:
        RowScanError: The value is NULL, not numeric, or not finite.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise RowScanError(query, column, value)
    result = float(value)
    if not math.isfinite(result):
        raise RowScanError(query, column, value)
    return result


def scan_report_counts(query: str, row: Sequence[Any] | None) -> ReportCounts:
    if row is None:
        raise RowScanError(query, "resolved", None)
    return ReportCounts(
        resolved=scan_int(query, "resolved", row[0]),
        unresolved=scan_int(query, "unresolved", row[1]),
    )


def scan_account_counts(query: str, row: Sequence[Any] | None) -> AccountCounts:
    if row is None:
        raise RowScanError(query, "unsuspended", None)
    return AccountCounts(
        unsuspended=scan_int(query, "unsuspended", row[0]),
        bots=scan_int(query, "bots", row[1]),
        groups=scan_int(query, "groups", row[2]),
        people=scan_int(query, "people", row[3]),
        suspended=scan_int(query, "num_suspended", row[4]),
    )


def scan_duration(query: str, value: Any) -> float:
    """Decode a resolution duration in seconds.

    Raises:
        RowScanError: The value is not a finite, non-negative number.
    """
    seconds = scan_float(query, "time_to_resolution", value)
    if seconds < 0:
        raise RowScanError(query, "time_to_resolution", value)
    return seconds


def scan_durations(query: str, rows: Sequence[Sequence[Any]]) -> list[float]:
    """Decode every row of a duration query; one bad row fails all of them."""
    return [scan_duration(query, row[0]) for row in rows]
