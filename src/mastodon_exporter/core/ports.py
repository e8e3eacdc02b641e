"""Port interface for the backing store.

The scrape orchestrator depends only on this protocol, not on a concrete
database driver. All methods are read-only.
"""

from typing import Protocol, runtime_checkable

from mastodon_exporter.core.models import AccountCounts, ReportCounts


@runtime_checkable
class ReportStorePort(Protocol):
    """Port for read-only queries against a Mastodon database.

    Examples: PostgresReportStore, SQLiteReportStore, InMemoryReportStore.
    """

    async def count_reports(self) -> ReportCounts:
        """Count reports split by whether they have been resolved.

        Raises:
            QueryError: The query failed.
        """
        ...

    async def resolution_durations(self) -> list[float]:
        """Return seconds between creation and resolution of each resolved report.

        Raises:
            QueryError: The query failed.
            RowScanError: A row could not be decoded. No partial result is returned.
        """
        ...

    async def count_accounts(self) -> AccountCounts:
        """Count local accounts by category.

        Raises:
            QueryError: The query failed.
        """
        ...

    async def count_posts(self) -> int:
        """Sum the number of posts made by local accounts.

        Raises:
            QueryError: The query failed.
        """
        ...

    async def ping(self) -> None:
        """Check that the store is reachable.

        Raises:
            StoreConnectionError: The store cannot be reached.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the store."""
        ...
