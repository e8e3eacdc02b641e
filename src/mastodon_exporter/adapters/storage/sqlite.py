"""SQLite storage adapter for Mastodon database snapshots.

Reads the subset of the Mastodon schema the exporter needs (reports,
accounts, account_stats) from a SQLite file. Timestamps are stored as
ISO-8601 text, as produced by ``sqlite3`` datetime adapters and most dump
tools.
"""

import asyncio
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from mastodon_exporter.adapters.storage.rows import (
    scan_account_counts,
    scan_durations,
    scan_int,
    scan_report_counts,
)
from mastodon_exporter.core.errors import QueryError, StoreConnectionError
from mastodon_exporter.core.models import AccountCounts, ReportCounts

MASTODON_SCHEMA = """
CREATE TABLE IF NOT EXISTS reports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    action_taken_at TEXT
);
CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT,
    suspended_at TEXT,
    actor_type TEXT
);
CREATE TABLE IF NOT EXISTS account_stats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id INTEGER NOT NULL REFERENCES accounts(id),
    statuses_count INTEGER NOT NULL DEFAULT 0
);
"""

_COUNT_REPORTS = """
SELECT
  COALESCE(SUM(CASE WHEN action_taken_at IS NOT NULL THEN 1 ELSE 0 END), 0) AS resolved,
  COALESCE(SUM(CASE WHEN action_taken_at IS NULL THEN 1 ELSE 0 END), 0) AS unresolved
FROM reports
"""

_SELECT_RESOLUTION_DURATIONS = """
SELECT
  -- julianday arithmetic carries float noise; timestamps have millisecond precision
  ROUND((julianday(action_taken_at) - julianday(created_at)) * 86400.0, 3) AS time_to_resolution
FROM reports
WHERE action_taken_at IS NOT NULL
"""

_COUNT_ACCOUNTS = """
WITH unsuspended AS (
  SELECT * FROM accounts
  WHERE domain IS NULL AND suspended_at IS NULL
),
unsuspended_stats AS (
  SELECT COUNT(*) AS unsuspended
       , COALESCE(SUM(CASE WHEN actor_type IN ('Application', 'Service') THEN 1 ELSE 0 END), 0) AS bots
       , COALESCE(SUM(CASE WHEN actor_type = 'Group' THEN 1 ELSE 0 END), 0) AS groups
       , COALESCE(SUM(CASE WHEN actor_type = 'Person' OR actor_type IS NULL THEN 1 ELSE 0 END), 0) AS people
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


class AsyncConnectionManager:
    """Hands out aiosqlite connections for one database.

    File databases get a fresh connection per use, opened read-only unless a
    schema is given. ``:memory:`` databases are connection-scoped, so a single
    connection is kept open until close().
    """

    def __init__(self, db_path: str, schema: str | None = None) -> None:
        self._db_path = db_path
        self._schema = schema
        self._schema_applied = schema is None
        self._lock = asyncio.Lock()
        self._memory_conn: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return self._db_path == ":memory:"

    async def _open(self) -> aiosqlite.Connection:
        if self.in_memory or self._schema is not None:
            return await aiosqlite.connect(self._db_path)
        uri = f"{Path(self._db_path).resolve().as_uri()}?mode=ro"
        return await aiosqlite.connect(uri, uri=True)

    async def _prepare(self, db: aiosqlite.Connection) -> None:
        if self._schema_applied:
            return
        async with self._lock:
            if not self._schema_applied:
                await db.executescript(self._schema)
                self._schema_applied = True

    async def _shared_memory_connection(self) -> aiosqlite.Connection:
        async with self._lock:
            if self._memory_conn is None:
                self._memory_conn = await self._open()
        return self._memory_conn

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a ready connection, closing it afterwards for file databases."""
        if self.in_memory:
            db = await self._shared_memory_connection()
            await self._prepare(db)
            yield db
            return
        db = await self._open()
        try:
            await self._prepare(db)
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        if self._memory_conn is not None:
            await self._memory_conn.close()
            self._memory_conn = None
            self._schema_applied = self._schema is None


class SQLiteReportStore:
    """aiosqlite implementation of ReportStorePort.

    Args:
        db_path: Path to the SQLite file, or ":memory:".
        schema: Optional DDL executed once before the first query. Pass
            MASTODON_SCHEMA to create empty tables.
    """

    def __init__(self, db_path: str, schema: str | None = None) -> None:
        self._db_path = db_path
        self._schema = schema
        self._manager = AsyncConnectionManager(db_path, schema)

    async def _fetchall(self, name: str, query: str) -> list[Any]:
        try:
            async with self._manager.connection() as db:
                async with db.execute(query) as cursor:
                    return list(await cursor.fetchall())
        except sqlite3.Error as e:
            raise QueryError(name, f"querying database: {e}") from e

    async def _fetchone(self, name: str, query: str) -> Any:
        rows = await self._fetchall(name, query)
        return rows[0] if rows else None

    async def execute(self, query: str, params: tuple[Any, ...] = ()) -> None:
        """Run a statement and commit.

        Only stores created with a schema are writable; it is used to load
        fixtures.
        """
        async with self._manager.connection() as db:
            await db.execute(query, params)
            await db.commit()

    async def count_reports(self) -> ReportCounts:
        row = await self._fetchone("count_reports", _COUNT_REPORTS)
        return scan_report_counts("count_reports", row)

    async def resolution_durations(self) -> list[float]:
        rows = await self._fetchall("resolution_durations", _SELECT_RESOLUTION_DURATIONS)
        return scan_durations("resolution_durations", rows)

    async def count_accounts(self) -> AccountCounts:
        row = await self._fetchone("count_accounts", _COUNT_ACCOUNTS)
        return scan_account_counts("count_accounts", row)

    async def count_posts(self) -> int:
        row = await self._fetchone("count_posts", _SUM_POSTS)
        if row is None:
            raise QueryError("count_posts", "no rows returned")
        return scan_int("count_posts", "sum", row[0])

    async def ping(self) -> None:
        if self._db_path != ":memory:" and self._schema is None:
            if not Path(self._db_path).exists():
                raise StoreConnectionError(f"database file not found: {self._db_path}")
        try:
            async with self._manager.connection() as db:
                await db.execute("SELECT 1")
        except sqlite3.Error as e:
            raise StoreConnectionError(f"unable to open database: {e}") from e

    async def close(self) -> None:
        await self._manager.close()
