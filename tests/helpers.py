"""Test doubles and helpers shared across test modules."""

import asyncio
from collections.abc import Iterable
from typing import Any

from mastodon_exporter.core.errors import QueryError, RowScanError
from mastodon_exporter.core.models import AccountCounts, ReportCounts


class StubStore:
    """ReportStorePort test double with canned results and injected failures.

    Args:
        reports: Result of count_reports().
        durations: Result of resolution_durations().
        accounts: Result of count_accounts().
        posts: Result of count_posts().
        fail: Names of methods that raise QueryError.
        bad_rows: Names of methods that raise RowScanError.
        delays: Seconds to sleep before answering, per method name.
    """

    def __init__(
        self,
        reports: ReportCounts = ReportCounts(resolved=3, unresolved=0),
        durations: Iterable[float] = (45.0, 500.0, 3700.0),
        accounts: AccountCounts = AccountCounts(
            unsuspended=10, bots=2, groups=1, people=7, suspended=3
        ),
        posts: int = 1234,
        fail: Iterable[str] = (),
        bad_rows: Iterable[str] = (),
        delays: dict[str, float] | None = None,
    ) -> None:
        self.reports = reports
        self.durations = list(durations)
        self.accounts = accounts
        self.posts = posts
        self.fail = set(fail)
        self.bad_rows = set(bad_rows)
        self.delays = delays or {}
        self.calls: list[str] = []
        self.closed = False

    async def _answer(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.delays:
            await asyncio.sleep(self.delays[name])
        if name in self.fail:
            raise QueryError(name, "querying database: connection refused")
        if name in self.bad_rows:
            raise RowScanError(name, "time_to_resolution", None)
        return value

    async def count_reports(self) -> ReportCounts:
        return await self._answer("count_reports", self.reports)

    async def resolution_durations(self) -> list[float]:
        return await self._answer("resolution_durations", list(self.durations))

    async def count_accounts(self) -> AccountCounts:
        return await self._answer("count_accounts", self.accounts)

    async def count_posts(self) -> int:
        return await self._answer("count_posts", self.posts)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self.closed = True


def samples_by_name(metrics: Iterable[Any]) -> dict[str, list[Any]]:
    """Group the samples of prometheus_client families by sample name."""
    grouped: dict[str, list[Any]] = {}
    for metric in metrics:
        for sample in metric.samples:
            grouped.setdefault(sample.name, []).append(sample)
    return grouped
