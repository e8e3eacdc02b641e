"""BDD step definitions for scrape failure scenarios."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest
from pytest_bdd import given, parsers, then, when

from mastodon_exporter.adapters.collector import build_registry
from mastodon_exporter.adapters.frameworks.asgi import (
    SCRAPE_TIMEOUT_HEADER,
    create_asgi_app,
)
from mastodon_exporter.core.exporter import MastodonExporter
from mastodon_exporter.core.models import ReportCounts
from tests.helpers import StubStore

SCENARIO_FAMILIES = ("reports", "resolution_times")


@dataclass
class ScrapeScenarioContext:
    """State shared between the steps of one scenario."""

    store: StubStore = field(
        default_factory=lambda: StubStore(durations=(), delays={})
    )
    response: httpx.Response | None = None


@pytest.fixture
def ctx() -> ScrapeScenarioContext:
    return ScrapeScenarioContext()


async def _scrape(store: StubStore, headers: dict[str, str]) -> httpx.Response:
    registry = build_registry(MastodonExporter(store, families=SCENARIO_FAMILIES))
    app = create_asgi_app(registry)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/metrics", headers=headers)


def _exposition_lines(ctx: ScrapeScenarioContext) -> list[str]:
    assert ctx.response is not None
    return [
        line for line in ctx.response.text.splitlines() if not line.startswith("#")
    ]


# === Given ===
@given(
    parsers.parse(
        "a Mastodon store with {resolved:d} resolved and {unresolved:d} unresolved reports"
    )
)
def step_report_counts(ctx: ScrapeScenarioContext, resolved: int, unresolved: int) -> None:
    ctx.store.reports = ReportCounts(resolved=resolved, unresolved=unresolved)


@given(parsers.parse("resolved reports that took {first:d}, {second:d} and {third:d} seconds"))
def step_durations(ctx: ScrapeScenarioContext, first: int, second: int, third: int) -> None:
    ctx.store.durations = [float(first), float(second), float(third)]


@given(parsers.parse("the {query} query fails"))
def step_query_fails(ctx: ScrapeScenarioContext, query: str) -> None:
    ctx.store.fail.add(query)


@given(parsers.parse("the {query} query takes {seconds:g} seconds"))
def step_query_slow(ctx: ScrapeScenarioContext, query: str, seconds: float) -> None:
    ctx.store.delays[query] = seconds


# === When ===
@when("Prometheus scrapes the exporter")
def step_scrape(ctx: ScrapeScenarioContext) -> None:
    ctx.response = asyncio.run(_scrape(ctx.store, {}))


@when(parsers.parse("Prometheus scrapes the exporter with a timeout of {timeout} seconds"))
def step_scrape_with_timeout(ctx: ScrapeScenarioContext, timeout: str) -> None:
    ctx.response = asyncio.run(_scrape(ctx.store, {SCRAPE_TIMEOUT_HEADER: timeout}))


# === Then ===
@then(parsers.parse("the response status is {status:d}"))
def step_status(ctx: ScrapeScenarioContext, status: int) -> None:
    assert ctx.response is not None
    assert ctx.response.status_code == status


@then(parsers.parse("the sample {sample} is {value}"))
def step_sample_value(ctx: ScrapeScenarioContext, sample: str, value: str) -> None:
    assert f"{sample} {value}" in _exposition_lines(ctx)


@then(parsers.parse("{family} is absent"))
def step_family_absent(ctx: ScrapeScenarioContext, family: str) -> None:
    for line in _exposition_lines(ctx):
        name = line.split("{", 1)[0].split(" ", 1)[0]
        assert name != family and not name.startswith(f"{family}_")
