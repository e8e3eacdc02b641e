"""Integration tests for the exporter's ASGI application."""

import pytest

from mastodon_exporter.adapters.collector import build_registry
from mastodon_exporter.adapters.frameworks.asgi import (
    SCRAPE_TIMEOUT_HEADER,
    create_asgi_app,
    parse_scrape_timeout,
    render_index,
    request_header,
)
from mastodon_exporter.app import create_app
from mastodon_exporter.config import ExporterConfig
from mastodon_exporter.core.exporter import MastodonExporter
from tests.helpers import StubStore

pytestmark = [pytest.mark.asgi, pytest.mark.tier(2)]


def make_app(store: StubStore, metrics_path: str = "/metrics", **kwargs):
    registry = build_registry(MastodonExporter(store, **kwargs))
    return create_asgi_app(registry, metrics_path)


class TestMetricsEndpoint:
    """GET on the telemetry path."""

    async def test_returns_exposition(self, asgi_test_client) -> None:
        async with asgi_test_client(make_app(StubStore())) as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'mastodon_exporter_num_reports{resolved="true"} 3.0' in response.text
        assert "mastodon_exporter_errors 0.0" in response.text
        assert "mastodon_exporter_build_info{" in response.text

    async def test_store_failure_still_returns_200(self, asgi_test_client) -> None:
        store = StubStore(fail=["count_reports", "resolution_durations"])
        app = make_app(store, families=("reports", "resolution_times"))

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics")

        assert response.status_code == 200
        assert "mastodon_exporter_errors 2.0" in response.text
        assert "mastodon_exporter_num_reports{" not in response.text

    async def test_every_request_scrapes_the_store(self, asgi_test_client) -> None:
        store = StubStore()
        app = make_app(store, families=("posts",))

        async with asgi_test_client(app) as client:
            await client.get("/metrics")
            await client.get("/metrics")

        assert store.calls == ["count_posts", "count_posts"]

    async def test_scrape_timeout_header(self, asgi_test_client) -> None:
        store = StubStore(delays={"count_reports": 5})
        app = make_app(store, families=("reports", "posts"))

        async with asgi_test_client(app) as client:
            response = await client.get(
                "/metrics", headers={SCRAPE_TIMEOUT_HEADER: "0.05"}
            )

        assert response.status_code == 200
        assert "mastodon_exporter_errors 1.0" in response.text
        assert store.calls == ["count_reports"]

    async def test_custom_telemetry_path(self, asgi_test_client) -> None:
        async with asgi_test_client(make_app(StubStore(), "/probe")) as client:
            moved = await client.get("/probe")
            old = await client.get("/metrics")

        assert moved.status_code == 200
        assert old.status_code == 404

    async def test_render_failure_returns_500(self, asgi_test_client) -> None:
        class ExplodingRegistry:
            def collect(self):
                raise RuntimeError("registry broken")

        app = create_asgi_app(ExplodingRegistry())

        async with asgi_test_client(app) as client:
            response = await client.get("/metrics")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}


class TestOtherRoutes:
    async def test_index_links_to_metrics(self, asgi_test_client) -> None:
        async with asgi_test_client(make_app(StubStore())) as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<a href='/metrics'>Metrics</a>" in response.text

    async def test_unknown_path_is_404(self, asgi_test_client) -> None:
        async with asgi_test_client(make_app(StubStore())) as client:
            response = await client.get("/nope")

        assert response.status_code == 404
        assert response.text == "Not Found"

    async def test_create_app_wires_config(self, asgi_test_client) -> None:
        config = ExporterConfig(
            database_url="sqlite://", telemetry_path="/m", families=("posts",)
        )
        app, registry = create_app(StubStore(), config)

        async with asgi_test_client(app) as client:
            response = await client.get("/m")

        assert "mastodon_exporter_num_posts 1234.0" in response.text
        assert registry.get_sample_value("mastodon_exporter_errors") == 0.0


class TestHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, None), ("10", 10.0), ("0.5", 0.5), ("abc", None), ("0", None), ("inf", None)],
    )
    def test_parse_scrape_timeout(self, value: str | None, expected: float | None) -> None:
        assert parse_scrape_timeout(value) == expected

    def test_request_header_is_case_insensitive(self) -> None:
        scope = {"headers": [(b"x-prometheus-scrape-timeout-seconds", b"9.5")]}

        assert request_header(scope, SCRAPE_TIMEOUT_HEADER) == "9.5"
        assert request_header(scope, "accept") is None

    def test_render_index_escapes_path(self) -> None:
        assert "/a&lt;b" in render_index("/a<b")
