"""In-memory storage adapter holding Mastodon records in lists."""

from dataclasses import dataclass
from datetime import datetime

from mastodon_exporter.core.models import AccountCounts, ReportCounts


@dataclass(frozen=True)
class Report:
    """A moderation report. Unresolved while action_taken_at is None."""

    created_at: datetime
    action_taken_at: datetime | None = None


@dataclass(frozen=True)
class Account:
    """An account with its post count. Local when domain is None."""

    domain: str | None = None
    suspended_at: datetime | None = None
    actor_type: str | None = "Person"
    statuses_count: int = 0


class InMemoryReportStore:
    """In-memory implementation of ReportStorePort.

    Suitable for testing and demos where no database is available.
    """

    def __init__(
        self,
        reports: list[Report] | None = None,
        accounts: list[Account] | None = None,
    ) -> None:
        self._reports: list[Report] = list(reports or [])
        self._accounts: list[Account] = list(accounts or [])

    def add_report(self, report: Report) -> None:
        self._reports.append(report)

    def add_account(self, account: Account) -> None:
        self._accounts.append(account)

    async def count_reports(self) -> ReportCounts:
        resolved = sum(1 for r in self._reports if r.action_taken_at is not None)
        return ReportCounts(resolved=resolved, unresolved=len(self._reports) - resolved)

    async def resolution_durations(self) -> list[float]:
        return [
            (r.action_taken_at - r.created_at).total_seconds()
            for r in self._reports
            if r.action_taken_at is not None
        ]

    async def count_accounts(self) -> AccountCounts:
        local = [a for a in self._accounts if a.domain is None]
        active = [a for a in local if a.suspended_at is None]
        return AccountCounts(
            unsuspended=len(active),
            bots=sum(1 for a in active if a.actor_type in ("Application", "Service")),
            groups=sum(1 for a in active if a.actor_type == "Group"),
            people=sum(1 for a in active if a.actor_type in ("Person", None)),
            suspended=len(local) - len(active),
        )

    async def count_posts(self) -> int:
        return sum(a.statuses_count for a in self._accounts if a.domain is None)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
