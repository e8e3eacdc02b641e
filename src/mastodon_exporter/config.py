"""Exporter configuration and value parsers."""

from dataclasses import dataclass

from mastodon_exporter.adapters.logging import LOG_FORMATS, LOG_LEVELS
from mastodon_exporter.core.errors import ConfigError
from mastodon_exporter.core.exporter import FAMILY_KEYS
from mastodon_exporter.core.histogram import (
    DEFAULT_RESOLUTION_BUCKETS,
    validate_buckets,
)

DEFAULT_LISTEN_ADDRESS = ":9393"
DEFAULT_TELEMETRY_PATH = "/metrics"


def parse_buckets(text: str) -> tuple[float, ...]:
    """Parse a comma separated list of bucket boundaries in seconds.

    Raises:
        ConfigError: A value is not a number, or the list is not strictly
            increasing and positive.
    """
    try:
        values = [float(part) for part in text.split(",") if part.strip()]
        return validate_buckets(values)
    except ValueError as e:
        raise ConfigError(f"invalid resolution buckets {text!r}: {e}") from e


def parse_families(text: str) -> tuple[str, ...]:
    """Parse a comma separated list of metric family keys.

    Raises:
        ConfigError: Empty list or unknown key.
    """
    keys = tuple(part.strip() for part in text.split(",") if part.strip())
    if not keys:
        raise ConfigError("at least one metric family must be enabled")
    unknown = [key for key in keys if key not in FAMILY_KEYS]
    if unknown:
        raise ConfigError(
            f"unknown metric families: {', '.join(unknown)} "
            f"(choose from {', '.join(FAMILY_KEYS)})"
        )
    return keys


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host (``:9393``) listens on all interfaces.

    Raises:
        ConfigError: Missing or invalid port.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address must be host:port, got {address!r}")
    try:
        port = int(port_text)
    except ValueError as e:
        raise ConfigError(f"invalid port in listen address {address!r}") from e
    if not 0 <= port <= 65535:
        raise ConfigError(f"port out of range in listen address {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port


def parse_telemetry_path(path: str) -> str:
    if not path.startswith("/"):
        raise ConfigError(f"telemetry path must start with '/', got {path!r}")
    return path


def parse_log_level(level: str) -> str:
    level = level.lower()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"invalid log level {level!r} (choose from {', '.join(LOG_LEVELS)})"
        )
    return level


def parse_log_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in LOG_FORMATS:
        raise ConfigError(
            f"invalid log format {fmt!r} (choose from {', '.join(LOG_FORMATS)})"
        )
    return fmt


@dataclass(frozen=True)
class ExporterConfig:
    """Runtime configuration of the exporter process.

    Attributes:
        database_url: Connection URL of the Mastodon database.
        listen_address: host:port the HTTP server binds to.
        telemetry_path: Path under which metrics are exposed.
        tls_cert_file: Certificate for HTTPS, or None for plain HTTP.
        tls_key_file: Private key matching tls_cert_file.
        scrape_timeout: Upper bound on a scrape in seconds, or None.
        fan_out: Query metric families concurrently.
        families: Keys of the metric families to collect.
        resolution_buckets: Histogram boundaries for report resolution times.
        log_level: debug, info, warn or error.
        log_format: logfmt or json.
    """

    database_url: str
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    telemetry_path: str = DEFAULT_TELEMETRY_PATH
    tls_cert_file: str | None = None
    tls_key_file: str | None = None
    scrape_timeout: float | None = None
    fan_out: bool = False
    families: tuple[str, ...] = FAMILY_KEYS
    resolution_buckets: tuple[float, ...] = DEFAULT_RESOLUTION_BUCKETS
    log_level: str = "info"
    log_format: str = "logfmt"

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]

    def validate(self) -> "ExporterConfig":
        """Check cross-field constraints and return self.

        Raises:
            ConfigError: On any invalid value.
        """
        if not self.database_url:
            raise ConfigError("a database URL is required")
        parse_listen_address(self.listen_address)
        parse_telemetry_path(self.telemetry_path)
        if (self.tls_cert_file is None) != (self.tls_key_file is None):
            raise ConfigError("TLS needs both a certificate and a key file")
        if self.scrape_timeout is not None and self.scrape_timeout <= 0:
            raise ConfigError("scrape timeout must be positive")
        parse_log_level(self.log_level)
        parse_log_format(self.log_format)
        return self
