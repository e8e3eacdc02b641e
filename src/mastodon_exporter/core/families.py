"""Metric family definitions and builders.

Builders are pure: they turn query results into prometheus_client metric
families and never fail.
"""

from prometheus_client.core import GaugeMetricFamily, HistogramMetricFamily

from mastodon_exporter.core.models import (
    AccountCounts,
    FamilySpec,
    HistogramAccumulator,
    MetricKind,
    fq_name,
)

NUM_ACCOUNTS = FamilySpec(
    name=fq_name("num_accounts"),
    documentation="Number of accounts on this Mastodon instance.",
    kind=MetricKind.GAUGE,
    labelnames=("type",),
)

NUM_POSTS = FamilySpec(
    name=fq_name("num_posts"),
    documentation="Number of posts on this Mastodon instance.",
    kind=MetricKind.GAUGE,
)

NUM_REPORTS = FamilySpec(
    name=fq_name("num_reports"),
    documentation="Number of reports for this Mastodon instance.",
    kind=MetricKind.GAUGE,
    labelnames=("resolved",),
)

RESOLVED_TIME_SECONDS = FamilySpec(
    name=fq_name("resolved_time_seconds"),
    documentation="Time taken to resolve reports in this Mastodon instance.",
    kind=MetricKind.HISTOGRAM,
)

ERRORS = FamilySpec(
    name=fq_name("errors"),
    documentation="Number of errors encountered while querying.",
    kind=MetricKind.GAUGE,
)


def build_report_count_samples(resolved: int, unresolved: int) -> GaugeMetricFamily:
    """Build the num_reports gauge with one sample per resolution state."""
    family = NUM_REPORTS.new_family()
    family.add_metric(["true"], float(resolved))
    family.add_metric(["false"], float(unresolved))
    return family


def build_resolution_histogram_sample(
    accumulator: HistogramAccumulator,
) -> HistogramMetricFamily:
    """Build the resolved_time_seconds histogram from an accumulator."""
    family = RESOLVED_TIME_SECONDS.new_family()
    family.add_metric([], accumulator.buckets(), accumulator.sum)
    return family


def build_account_samples(counts: AccountCounts) -> GaugeMetricFamily:
    """Build the num_accounts gauge with one sample per account type."""
    family = NUM_ACCOUNTS.new_family()
    for label, value in counts.by_type():
        family.add_metric([label], float(value))
    return family


def build_post_sample(count: int) -> GaugeMetricFamily:
    family = NUM_POSTS.new_family()
    family.add_metric([], float(count))
    return family


def build_errors_sample(count: int) -> GaugeMetricFamily:
    """Build the errors gauge for a finished scrape."""
    family = ERRORS.new_family()
    family.add_metric([], float(count))
    return family
