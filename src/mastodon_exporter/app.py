"""Process wiring: store, exporter, registry and HTTP server."""

import logging

import uvicorn
from prometheus_client import CollectorRegistry

from mastodon_exporter import __version__
from mastodon_exporter.adapters.collector import build_registry
from mastodon_exporter.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from mastodon_exporter.adapters.storage import open_store
from mastodon_exporter.config import ExporterConfig
from mastodon_exporter.core.exporter import MastodonExporter
from mastodon_exporter.core.ports import ReportStorePort

logger = logging.getLogger(__name__)


def create_exporter(store: ReportStorePort, config: ExporterConfig) -> MastodonExporter:
    return MastodonExporter(
        store,
        buckets=config.resolution_buckets,
        families=config.families,
        fan_out=config.fan_out,
    )


def create_app(
    store: ReportStorePort, config: ExporterConfig
) -> tuple[ASGIApp, CollectorRegistry]:
    """Build the ASGI app and the registry it serves for an open store."""
    exporter = create_exporter(store, config)
    registry = build_registry(exporter, timeout=config.scrape_timeout)
    return create_asgi_app(registry, config.telemetry_path), registry


async def serve(config: ExporterConfig) -> None:
    """Connect to the store and serve metrics until the server stops.

    Raises:
        StoreConnectionError: The store could not be opened at startup.
    """
    logger.debug("Connecting to database")
    store = await open_store(config.database_url)
    try:
        app, _ = create_app(store, config)
        server_config = uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            ssl_certfile=config.tls_cert_file,
            ssl_keyfile=config.tls_key_file,
            log_config=None,
            access_log=False,
            lifespan="on",
        )
        logger.info(
            "Starting mastodon_exporter",
            extra={"version": __version__, "address": config.listen_address},
        )
        await uvicorn.Server(server_config).serve()
    finally:
        await store.close()
