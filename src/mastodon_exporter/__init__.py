"""Prometheus exporter for Mastodon moderation and account metrics."""

__version__ = "0.1.0"

from mastodon_exporter.core.errors import (  # noqa: E402
    ConfigError,
    ExporterError,
    QueryError,
    RowScanError,
    StoreConnectionError,
    StoreError,
)
from mastodon_exporter.core.exporter import FAMILY_KEYS, MastodonExporter  # noqa: E402
from mastodon_exporter.core.histogram import (  # noqa: E402
    DEFAULT_RESOLUTION_BUCKETS,
    build_histogram,
)

__all__ = [
    "DEFAULT_RESOLUTION_BUCKETS",
    "FAMILY_KEYS",
    "ConfigError",
    "ExporterError",
    "MastodonExporter",
    "QueryError",
    "RowScanError",
    "StoreConnectionError",
    "StoreError",
    "__version__",
    "build_histogram",
]
