"""Cumulative histogram bucketing for resolution durations."""

import math
from collections.abc import Iterable, Sequence

from mastodon_exporter.core.models import HistogramAccumulator

DEFAULT_RESOLUTION_BUCKETS: tuple[float, ...] = (
    60,  # 1 minute
    600,  # 10 minutes
    1800,  # 30 minutes
    3600,  # 1 hour
    14400,  # 4 hours
    28800,  # 8 hours
    86400,  # 24 hours
    172800,  # 48 hours
    604800,  # 1 week
)


def validate_buckets(boundaries: Iterable[float]) -> tuple[float, ...]:
    """Check that bucket boundaries are usable and return them as a tuple.

    Args:
        boundaries: Candidate bucket upper bounds in seconds.

    Returns:
        The boundaries as a tuple of floats.

    Raises:
        ValueError: If the list is empty, contains a non-positive or
            non-finite value, or is not strictly increasing.
    """
    result = tuple(float(b) for b in boundaries)
    if not result:
        raise ValueError("at least one bucket boundary is required")
    for boundary in result:
        if not math.isfinite(boundary) or boundary <= 0:
            raise ValueError(f"bucket boundary must be positive and finite: {boundary}")
    for lower, upper in zip(result, result[1:]):
        if upper <= lower:
            raise ValueError(
                f"bucket boundaries must be strictly increasing: {lower} >= {upper}"
            )
    return result


def build_histogram(
    boundaries: Sequence[float],
    observations: Iterable[float],
) -> HistogramAccumulator:
    """Fold observations into a cumulative histogram.

    Every observation increments each boundary it is less than or equal to,
    so a bucket counts all observations up to and including its bound.

    Args:
        boundaries: Strictly increasing bucket upper bounds.
        observations: Observed values.

    Returns:
        HistogramAccumulator with cumulative counts, sum and total count.
        An empty observation sequence gives all-zero counts.
    """
    bounds = tuple(float(b) for b in boundaries)
    counts = [0] * len(bounds)
    total = 0.0
    n = 0

    for value in observations:
        total += value
        n += 1
        for i, boundary in enumerate(bounds):
            if value <= boundary:
                counts[i] += 1

    return HistogramAccumulator(
        boundaries=bounds,
        cumulative_counts=tuple(counts),
        sum=total,
        count=n,
    )
