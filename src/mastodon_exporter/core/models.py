"""Core domain models for the exporter."""

from dataclasses import dataclass, field
from enum import Enum

from prometheus_client.core import GaugeMetricFamily, HistogramMetricFamily, Metric
from prometheus_client.utils import floatToGoString

NAMESPACE = "mastodon"
SUBSYSTEM = "exporter"


def fq_name(name: str, namespace: str = NAMESPACE, subsystem: str = SUBSYSTEM) -> str:
    """Join namespace, subsystem and name with underscores, skipping empty parts."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


class MetricKind(str, Enum):
    """Kind of a metric family."""

    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class FamilySpec:
    """Static identity of a metric family.

    Attributes:
        name: Fully-qualified metric name (e.g., mastodon_exporter_num_reports).
        documentation: Help text.
        kind: Gauge or histogram.
        labelnames: Ordered label names, empty for unlabeled families.
    """

    name: str
    documentation: str
    kind: MetricKind
    labelnames: tuple[str, ...] = ()

    def new_family(self) -> GaugeMetricFamily | HistogramMetricFamily:
        """Return an empty prometheus_client family with this identity."""
        if self.kind is MetricKind.HISTOGRAM:
            return HistogramMetricFamily(
                self.name, self.documentation, labels=list(self.labelnames)
            )
        return GaugeMetricFamily(
            self.name, self.documentation, labels=list(self.labelnames)
        )

    def describe(self) -> Metric:
        """Return the sample-less family used for registration."""
        return self.new_family()


@dataclass(frozen=True)
class HistogramAccumulator:
    """Cumulative histogram of observations.

    Attributes:
        boundaries: Bucket upper bounds, strictly increasing.
        cumulative_counts: Observations <= each boundary, same order.
        sum: Sum of all observations.
        count: Number of observations (the implicit +Inf bucket).
    """

    boundaries: tuple[float, ...]
    cumulative_counts: tuple[int, ...]
    sum: float = 0.0
    count: int = 0

    def bucket(self, boundary: float) -> int:
        """Return the cumulative count for a configured boundary."""
        return self.cumulative_counts[self.boundaries.index(boundary)]

    def buckets(self) -> list[tuple[str, float]]:
        """Return (le, cumulative count) pairs ending with the +Inf bucket."""
        pairs = [
            (floatToGoString(b), float(c))
            for b, c in zip(self.boundaries, self.cumulative_counts)
        ]
        pairs.append(("+Inf", float(self.count)))
        return pairs


@dataclass(frozen=True)
class ReportCounts:
    """Reports partitioned by whether they have been resolved."""

    resolved: int
    unresolved: int


@dataclass(frozen=True)
class AccountCounts:
    """Local account counts by category."""

    unsuspended: int
    bots: int
    groups: int
    people: int
    suspended: int

    def by_type(self) -> list[tuple[str, int]]:
        """Return (type label, count) pairs in exposition order."""
        return [
            ("unsuspended", self.unsuspended),
            ("bots", self.bots),
            ("groups", self.groups),
            ("people", self.people),
            ("suspended", self.suspended),
        ]


@dataclass(frozen=True)
class FamilyResult:
    """Outcome of collecting one metric family during a scrape.

    Attributes:
        family: Key of the family (e.g., "reports").
        metrics: Metrics built on success, empty on failure.
        error: The failure, or None on success.
    """

    family: str
    metrics: list[Metric] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def count_failures(results: list[FamilyResult]) -> int:
    """Fold family results into the scrape error tally."""
    return sum(1 for result in results if not result.ok)
