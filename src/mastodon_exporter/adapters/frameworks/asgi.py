"""Plain ASGI application for the exporter.

Serves the metrics endpoint and a small landing page without a web
framework, so the exporter only needs an ASGI server such as uvicorn.
"""

import html
import json
import logging
import math
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from mastodon_exporter.adapters.collector import render_latest

logger = logging.getLogger(__name__)

Message = MutableMapping[str, Any]
Scope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

SCRAPE_TIMEOUT_HEADER = "X-Prometheus-Scrape-Timeout-Seconds"
INDEX_CONTENT_TYPE = "text/html; charset=UTF-8"

_INDEX_TEMPLATE = """<html>
<head><title>Mastodon exporter</title></head>
<body>
<h1>Mastodon exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>"""


def render_index(metrics_path: str) -> str:
    """Render the HTML landing page linking to the metrics path."""
    return _INDEX_TEMPLATE.format(metrics_path=html.escape(metrics_path, quote=True))


def request_header(scope: Scope, name: str) -> str | None:
    """Look up a request header by case-insensitive name."""
    wanted = name.lower().encode("latin-1")
    for key, value in scope.get("headers", ()):
        if key.lower() == wanted:
            return value.decode("latin-1")
    return None


def parse_scrape_timeout(value: str | None) -> float | None:
    """Parse the scrape timeout header sent by Prometheus.

    Returns:
        Timeout in seconds, or None if missing or not a positive finite number.
    """
    if value is None:
        return None
    try:
        timeout = float(value)
    except ValueError:
        return None
    if not math.isfinite(timeout) or timeout <= 0:
        return None
    return timeout


async def _respond(
    send: Send, status: int, body: str | bytes, content_type: str
) -> None:
    payload = body.encode("utf-8") if isinstance(body, str) else body
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", content_type.encode("latin-1")),
                (b"content-length", str(len(payload)).encode("latin-1")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": payload})


async def _serve_metrics(
    send: Send, registry: CollectorRegistry, timeout: float | None
) -> None:
    """Render the registry, answering 500 with a JSON body if rendering fails.

    Store failures never reach this point; they are counted in the errors
    gauge by the exporter.
    """
    try:
        body = await render_latest(registry, timeout)
    except Exception:
        logger.exception("Error rendering metrics")
        await _respond(
            send,
            500,
            json.dumps({"error": "Internal Server Error"}),
            "application/json",
        )
        return
    await _respond(send, 200, body, CONTENT_TYPE_LATEST)


async def _run_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge startup and shutdown; the exporter holds no app state."""
    while True:
        event = await receive()
        if event["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif event["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_asgi_app(
    registry: CollectorRegistry,
    metrics_path: str = "/metrics",
) -> ASGIApp:
    """Create the exporter's ASGI application.

    Args:
        registry: Registry rendered on every request to metrics_path.
        metrics_path: Path under which metrics are exposed.

    Returns:
        ASGI application answering metrics_path, "/" and 404 elsewhere.
    """
    index_body = render_index(metrics_path)

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        kind = scope["type"]
        if kind == "lifespan":
            await _run_lifespan(receive, send)
        elif kind == "http":
            path = scope["path"]
            if path == metrics_path:
                timeout = parse_scrape_timeout(
                    request_header(scope, SCRAPE_TIMEOUT_HEADER)
                )
                await _serve_metrics(send, registry, timeout)
            elif path == "/":
                await _respond(send, 200, index_body, INDEX_CONTENT_TYPE)
            else:
                await _respond(send, 404, "Not Found", "text/plain; charset=utf-8")

    return app
