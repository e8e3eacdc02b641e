"""Command line entry point for mastodon-exporter."""

import asyncio
import logging
from typing import Annotated

import typer

from mastodon_exporter import __version__
from mastodon_exporter.adapters.logging import configure_logging
from mastodon_exporter.app import serve
from mastodon_exporter.config import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_TELEMETRY_PATH,
    ExporterConfig,
    parse_buckets,
    parse_families,
    parse_log_format,
    parse_log_level,
)
from mastodon_exporter.core.errors import ConfigError, StoreConnectionError
from mastodon_exporter.core.exporter import FAMILY_KEYS
from mastodon_exporter.core.histogram import DEFAULT_RESOLUTION_BUCKETS

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Prometheus exporter for Mastodon moderation and account metrics.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mastodon_exporter, version {__version__}")
        raise typer.Exit()


@app.command()
def main(
    database_url: Annotated[
        str,
        typer.Option(
            "--mastodon.database_url",
            envvar="DATABASE_URL",
            help="Postgres connection string for the Mastodon database.",
        ),
    ] = "",
    listen_address: Annotated[
        str,
        typer.Option(
            "--web.listen-address",
            envvar="MASTODON_EXPORTER_WEB_LISTEN_ADDRESS",
            help="Address on which to expose metrics and web interface.",
        ),
    ] = DEFAULT_LISTEN_ADDRESS,
    telemetry_path: Annotated[
        str,
        typer.Option(
            "--web.telemetry-path",
            envvar="MASTODON_EXPORTER_WEB_TELEMETRY_PATH",
            help="Path under which to expose metrics.",
        ),
    ] = DEFAULT_TELEMETRY_PATH,
    tls_cert_file: Annotated[
        str | None,
        typer.Option("--web.tls-cert-file", help="Certificate file for HTTPS."),
    ] = None,
    tls_key_file: Annotated[
        str | None,
        typer.Option("--web.tls-key-file", help="Private key file for HTTPS."),
    ] = None,
    scrape_timeout: Annotated[
        float | None,
        typer.Option(
            "--scrape.timeout",
            envvar="MASTODON_EXPORTER_SCRAPE_TIMEOUT",
            help="Upper bound on a single scrape, in seconds.",
        ),
    ] = None,
    fan_out: Annotated[
        bool,
        typer.Option(
            "--scrape.fan-out",
            help="Query metric families concurrently.",
        ),
    ] = False,
    families: Annotated[
        str,
        typer.Option(
            "--collector.families",
            envvar="MASTODON_EXPORTER_FAMILIES",
            help="Comma separated metric families to collect.",
        ),
    ] = ",".join(FAMILY_KEYS),
    buckets: Annotated[
        str,
        typer.Option(
            "--collector.resolution-buckets",
            envvar="MASTODON_EXPORTER_RESOLUTION_BUCKETS",
            help="Comma separated histogram boundaries for report resolution time, in seconds.",
        ),
    ] = ",".join(f"{b:g}" for b in DEFAULT_RESOLUTION_BUCKETS),
    log_level: Annotated[
        str,
        typer.Option(
            "--log.level",
            help="Only log messages with the given severity or above. One of: debug, info, warn, error.",
        ),
    ] = "info",
    log_format: Annotated[
        str,
        typer.Option(
            "--log.format",
            help="Output format of log messages. One of: logfmt, json.",
        ),
    ] = "logfmt",
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show application version.",
        ),
    ] = False,
) -> None:
    """Serve Mastodon metrics for Prometheus."""
    try:
        config = ExporterConfig(
            database_url=database_url,
            listen_address=listen_address,
            telemetry_path=telemetry_path,
            tls_cert_file=tls_cert_file,
            tls_key_file=tls_key_file,
            scrape_timeout=scrape_timeout,
            fan_out=fan_out,
            families=parse_families(families),
            log_level=parse_log_level(log_level),
            log_format=parse_log_format(log_format),
            resolution_buckets=parse_buckets(buckets),
        ).validate()
    except ConfigError as e:
        raise typer.BadParameter(str(e)) from e

    configure_logging(config.log_level, config.log_format)

    try:
        asyncio.run(serve(config))
    except StoreConnectionError as e:
        logger.error("Unable to connect to database", extra={"err": str(e)})
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    app()
