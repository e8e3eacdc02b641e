"""PostgreSQL storage adapter for a live Mastodon database."""

import logging
from typing import Any

import asyncpg

from mastodon_exporter.adapters.storage.rows import (
    scan_account_counts,
    scan_durations,
    scan_int,
    scan_report_counts,
)
from mastodon_exporter.core.errors import QueryError, StoreConnectionError
from mastodon_exporter.core.models import AccountCounts, ReportCounts

logger = logging.getLogger(__name__)

_COUNT_REPORTS = """
SELECT
  COALESCE(COUNT(*) FILTER (WHERE action_taken_at IS NOT NULL), 0) AS resolved,
  COALESCE(COUNT(*) FILTER (WHERE action_taken_at IS NULL), 0) AS unresolved
FROM reports
"""

_SELECT_RESOLUTION_DURATIONS = """
SELECT
  extract(EPOCH FROM (action_taken_at - created_at)) AS time_to_resolution
FROM reports
WHERE action_taken_at IS NOT NULL
"""

_COUNT_ACCOUNTS = """
WITH unsuspended AS (
  SELECT * FROM accounts
  WHERE domain IS NULL AND suspended_at IS NULL
),
unsuspended_stats AS (
  SELECT COALESCE(COUNT(*), 0) AS unsuspended
       , COALESCE(COUNT(*) FILTER (WHERE actor_type = 'Application' OR actor_type = 'Service'), 0) AS bots
       , COALESCE(COUNT(*) FILTER (WHERE actor_type = 'Group'), 0) AS groups
       , COALESCE(COUNT(*) FILTER (WHERE actor_type = 'Person' OR actor_type IS NULL), 0) AS people
  FROM unsuspended
),
suspended AS (
  SELECT COUNT(*) AS num_suspended
  FROM accounts
  WHERE domain IS NULL AND suspended_at IS NOT NULL
)
SELECT
  a.unsuspended,
  a.bots,
  a.groups,
  a.people,
  b.num_suspended
FROM unsuspended_stats AS a, suspended AS b
"""

_SUM_POSTS = """
SELECT
  COALESCE(SUM(s.statuses_count), 0)
FROM accounts AS a
JOIN account_stats AS s
  ON a.id = s.account_id
WHERE a.domain IS NULL
"""

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgresReportStore:
    """asyncpg implementation of ReportStorePort.

    Wraps a connection pool that is shared by all scrapes. Queries are plain
    reads, so concurrent scrapes only contend for pool connections.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(
        cls, dsn: str, min_size: int = 1, max_size: int = 4
    ) -> "PostgresReportStore":
        """Create a pool for the given connection string.

        Raises:
            StoreConnectionError: The pool could not be created.
        """
        logger.debug("Connecting to database")
        try:
            pool = await asyncpg.create_pool(dsn, min_size=min_size, max_size=max_size)
        except (*_DRIVER_ERRORS, TimeoutError, ValueError) as e:
            raise StoreConnectionError(f"unable to connect to database: {e}") from e
        return cls(pool)

    async def _fetchrow(self, name: str, query: str) -> Any:
        try:
            return await self._pool.fetchrow(query)
        except _DRIVER_ERRORS as e:
            raise QueryError(name, f"querying database: {e}") from e

    async def _fetch(self, name: str, query: str) -> list[Any]:
        try:
            return await self._pool.fetch(query)
        except _DRIVER_ERRORS as e:
            raise QueryError(name, f"querying database: {e}") from e

    async def count_reports(self) -> ReportCounts:
        row = await self._fetchrow("count_reports", _COUNT_REPORTS)
        return scan_report_counts("count_reports", row)

    async def resolution_durations(self) -> list[float]:
        rows = await self._fetch("resolution_durations", _SELECT_RESOLUTION_DURATIONS)
        return scan_durations("resolution_durations", rows)

    async def count_accounts(self) -> AccountCounts:
        row = await self._fetchrow("count_accounts", _COUNT_ACCOUNTS)
        return scan_account_counts("count_accounts", row)

    async def count_posts(self) -> int:
        row = await self._fetchrow("count_posts", _SUM_POSTS)
        if row is None:
            raise QueryError("count_posts", "no rows returned")
        return scan_int("count_posts", "sum", row[0])

    async def ping(self) -> None:
        try:
            await self._pool.fetchval("SELECT 1")
        except _DRIVER_ERRORS as e:
            raise StoreConnectionError(f"unable to ping database: {e}") from e

    async def close(self) -> None:
        await self._pool.close()
