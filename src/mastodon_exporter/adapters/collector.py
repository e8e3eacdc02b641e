"""prometheus_client registry integration.

prometheus_client calls collectors synchronously. ExporterCollector bridges
that call to the async MastodonExporter: render_latest() runs the registry
in a worker thread and records the serving event loop in a context variable,
and collect() submits the scrape back to that loop.
"""

import asyncio
import platform
from collections.abc import Iterator
from contextvars import ContextVar
from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Info, generate_latest
from prometheus_client.core import Metric

from mastodon_exporter import __version__
from mastodon_exporter.core.exporter import MastodonExporter
from mastodon_exporter.core.models import fq_name


@dataclass(frozen=True)
class ScrapeRequest:
    """Context of one HTTP scrape request.

    Attributes:
        loop: Event loop that owns the store connections.
        timeout: Deadline requested by the scraper, in seconds.
    """

    loop: asyncio.AbstractEventLoop
    timeout: float | None = None


_current_request: ContextVar[ScrapeRequest | None] = ContextVar(
    "mastodon_exporter_scrape_request", default=None
)


def _effective_timeout(*timeouts: float | None) -> float | None:
    """Return the smallest of the given timeouts, ignoring None."""
    present = [t for t in timeouts if t is not None]
    return min(present) if present else None


class ExporterCollector:
    """Custom collector exposing a MastodonExporter to a CollectorRegistry.

    Example:
        ```python
        registry = CollectorRegistry(auto_describe=False)
        registry.register(ExporterCollector(exporter))
        body = await render_latest(registry)
        ```
    """

    def __init__(self, exporter: MastodonExporter, timeout: float | None = None) -> None:
        """Initialize the collector.

        Args:
            exporter: Exporter that performs the scrape.
            timeout: Upper bound on every scrape in seconds (None = no limit).
        """
        self._exporter = exporter
        self._timeout = timeout

    def describe(self) -> list[Metric]:
        return self._exporter.describe()

    def collect(self) -> Iterator[Metric]:
        """Run one scrape and yield its metrics.

        Must not be called from the event loop thread; use render_latest()
        from async code.
        """
        request = _current_request.get()
        if request is None:
            metrics = asyncio.run(self._exporter.scrape(self._timeout))
        else:
            timeout = _effective_timeout(self._timeout, request.timeout)
            future = asyncio.run_coroutine_threadsafe(
                self._exporter.scrape(timeout), request.loop
            )
            metrics = future.result()
        yield from metrics


def build_registry(
    exporter: MastodonExporter, timeout: float | None = None
) -> CollectorRegistry:
    """Create the registry served by the HTTP layer.

    Holds the exporter collector and a build_info metric. No default
    process or platform collectors are registered.
    """
    registry = CollectorRegistry(auto_describe=False)
    build_info = Info(
        fq_name("build"),
        "A metric with a constant '1' value labeled by exporter version.",
        registry=registry,
    )
    build_info.info(
        {"version": __version__, "python_version": platform.python_version()}
    )
    registry.register(ExporterCollector(exporter, timeout))
    return registry


async def render_latest(
    registry: CollectorRegistry, timeout: float | None = None
) -> bytes:
    """Render the registry in the Prometheus text format.

    Args:
        registry: Registry to render.
        timeout: Scrape deadline requested by the caller, in seconds.

    Returns:
        Encoded exposition body.
    """
    token = _current_request.set(ScrapeRequest(asyncio.get_running_loop(), timeout))
    try:
        return await asyncio.to_thread(generate_latest, registry)
    finally:
        _current_request.reset(token)
