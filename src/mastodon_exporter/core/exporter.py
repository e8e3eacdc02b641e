"""Scrape orchestration for the Mastodon exporter.

A scrape queries every enabled metric family independently. A family that
fails is logged and counted; it never prevents the other families from being
emitted. The errors gauge is emitted at the end of every scrape.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass

from prometheus_client.core import Metric

from mastodon_exporter.core.errors import StoreError
from mastodon_exporter.core.families import (
    ERRORS,
    NUM_ACCOUNTS,
    NUM_POSTS,
    NUM_REPORTS,
    RESOLVED_TIME_SECONDS,
    build_account_samples,
    build_errors_sample,
    build_post_sample,
    build_report_count_samples,
    build_resolution_histogram_sample,
)
from mastodon_exporter.core.histogram import (
    DEFAULT_RESOLUTION_BUCKETS,
    build_histogram,
    validate_buckets,
)
from mastodon_exporter.core.models import FamilyResult, FamilySpec, count_failures
from mastodon_exporter.core.ports import ReportStorePort

logger = logging.getLogger(__name__)

FAMILY_KEYS: tuple[str, ...] = ("reports", "resolution_times", "accounts", "posts")


@dataclass(frozen=True)
class FamilyCollector:
    """One independently collected metric family.

    Attributes:
        key: Short identifier used in configuration and logs.
        description: Human readable subject used in log messages.
        spec: Static identity of the emitted family.
        fetch: Coroutine function that queries the store and builds metrics.
    """

    key: str
    description: str
    spec: FamilySpec
    fetch: Callable[[], Awaitable[list[Metric]]]


class MastodonExporter:
    """Collects Mastodon metrics from a store on demand.

    Holds no per-scrape state: every call to scrape() builds its own
    results, so overlapping scrapes are independent.
    """

    def __init__(
        self,
        store: ReportStorePort,
        buckets: Iterable[float] = DEFAULT_RESOLUTION_BUCKETS,
        families: Sequence[str] | None = None,
        fan_out: bool = False,
        scrape_timeout: float | None = None,
    ) -> None:
        """Initialize the exporter.

        Args:
            store: Backing store implementing ReportStorePort.
            buckets: Resolution time bucket boundaries in seconds.
            families: Keys of the families to collect, in order. Defaults to
                all of FAMILY_KEYS.
            fan_out: Query families concurrently instead of one after another.
            scrape_timeout: Default scrape deadline in seconds (None = no limit).

        Raises:
            ValueError: On invalid buckets or an unknown family key.
        """
        self._store = store
        self._buckets = validate_buckets(buckets)
        self._fan_out = fan_out
        self._scrape_timeout = scrape_timeout

        available = {
            "reports": FamilyCollector(
                "reports", "number of reports", NUM_REPORTS, self._fetch_reports
            ),
            "resolution_times": FamilyCollector(
                "resolution_times",
                "report metrics",
                RESOLVED_TIME_SECONDS,
                self._fetch_resolution_times,
            ),
            "accounts": FamilyCollector(
                "accounts", "number of accounts", NUM_ACCOUNTS, self._fetch_accounts
            ),
            "posts": FamilyCollector(
                "posts", "number of posts", NUM_POSTS, self._fetch_posts
            ),
        }
        keys = FAMILY_KEYS if families is None else tuple(families)
        unknown = [key for key in keys if key not in available]
        if unknown:
            raise ValueError(f"unknown metric families: {', '.join(unknown)}")
        self._collectors = [available[key] for key in dict.fromkeys(keys)]

    @property
    def buckets(self) -> tuple[float, ...]:
        return self._buckets

    @property
    def families(self) -> tuple[str, ...]:
        return tuple(c.key for c in self._collectors)

    def describe(self) -> list[Metric]:
        """Return the static identities of every family this exporter emits."""
        described = [c.spec.describe() for c in self._collectors]
        described.append(ERRORS.describe())
        return described

    async def scrape(self, timeout: float | None = None) -> list[Metric]:
        """Run one collection cycle.

        Args:
            timeout: Deadline for this scrape in seconds. Falls back to the
                exporter's scrape_timeout.

        Returns:
            Metrics of every family that succeeded, followed by the errors
            gauge. Store failures never raise out of this method.
        """
        if timeout is None:
            timeout = self._scrape_timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        if self._fan_out:
            results = list(
                await asyncio.gather(
                    *(self._collect_family(c, deadline) for c in self._collectors)
                )
            )
        else:
            results = []
            for collector in self._collectors:
                if deadline is not None and loop.time() >= deadline:
                    logger.warning(
                        "Scrape deadline exceeded, skipping family",
                        extra={"family": collector.key},
                    )
                    continue
                results.append(await self._collect_family(collector, deadline))

        metrics = [metric for result in results for metric in result.metrics]
        metrics.append(build_errors_sample(count_failures(results)))
        logger.debug("scrape finished")
        return metrics

    async def _collect_family(
        self, collector: FamilyCollector, deadline: float | None
    ) -> FamilyResult:
        """Collect one family, converting any failure into a failed result."""
        logger.debug(f"Fetching {collector.description}")
        try:
            async with asyncio.timeout_at(deadline):
                metrics = await collector.fetch()
        except StoreError as e:
            logger.error(
                f"Error querying {collector.description}",
                extra={"family": collector.key, "err": str(e)},
            )
            return FamilyResult(collector.key, error=e)
        except TimeoutError as e:
            logger.error(
                f"Timed out querying {collector.description}",
                extra={"family": collector.key},
            )
            return FamilyResult(collector.key, error=e)
        except Exception as e:
            logger.exception(
                f"Unexpected error querying {collector.description}",
                extra={"family": collector.key},
            )
            return FamilyResult(collector.key, error=e)
        return FamilyResult(collector.key, metrics=metrics)

    # --- Family fetchers ---

    async def _fetch_reports(self) -> list[Metric]:
        counts = await self._store.count_reports()
        return [build_report_count_samples(counts.resolved, counts.unresolved)]

    async def _fetch_resolution_times(self) -> list[Metric]:
        durations = await self._store.resolution_durations()
        accumulator = build_histogram(self._buckets, durations)
        return [build_resolution_histogram_sample(accumulator)]

    async def _fetch_accounts(self) -> list[Metric]:
        counts = await self._store.count_accounts()
        return [build_account_samples(counts)]

    async def _fetch_posts(self) -> list[Metric]:
        count = await self._store.count_posts()
        return [build_post_sample(count)]
