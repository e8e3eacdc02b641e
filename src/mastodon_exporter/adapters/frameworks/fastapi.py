"""FastAPI adapter for the exporter endpoints."""

from fastapi import APIRouter, Header, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from mastodon_exporter.adapters.collector import render_latest
from mastodon_exporter.adapters.frameworks.asgi import (
    parse_scrape_timeout,
    render_index,
)


def create_exporter_router(
    registry: CollectorRegistry,
    metrics_path: str = "/metrics",
) -> APIRouter:
    """Create a FastAPI router with the index page and the metrics endpoint.

    Args:
        registry: Registry rendered on every request to metrics_path.
        metrics_path: Path under which metrics are exposed.

    Returns:
        APIRouter with both endpoints configured.
    """
    router = APIRouter()

    @router.get(metrics_path)
    async def get_metrics(
        scrape_timeout: str | None = Header(
            default=None, alias="X-Prometheus-Scrape-Timeout-Seconds"
        ),
    ) -> Response:
        """Return metrics in Prometheus text format."""
        body = await render_latest(registry, parse_scrape_timeout(scrape_timeout))
        return Response(content=body, media_type=CONTENT_TYPE_LATEST)

    @router.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(render_index(metrics_path))

    return router
