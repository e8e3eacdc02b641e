"""Example FastAPI application serving Mastodon metrics from demo data.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /          - Landing page linking to the metrics
    /metrics   - Prometheus text format
"""

from datetime import UTC, datetime, timedelta

from fastapi import FastAPI

from mastodon_exporter.adapters.collector import build_registry
from mastodon_exporter.adapters.frameworks.fastapi import create_exporter_router
from mastodon_exporter.adapters.storage import Account, InMemoryReportStore, Report
from mastodon_exporter.core.exporter import MastodonExporter

now = datetime.now(UTC)

store = InMemoryReportStore(
    reports=[
        Report(created_at=now - timedelta(hours=2), action_taken_at=now),
        Report(created_at=now - timedelta(minutes=5), action_taken_at=now),
        Report(created_at=now - timedelta(days=1)),
    ],
    accounts=[
        Account(actor_type="Person", statuses_count=120),
        Account(actor_type="Service", statuses_count=8),
        Account(actor_type="Group"),
        Account(actor_type="Person", suspended_at=now),
        Account(domain="mastodon.example", statuses_count=40),
    ],
)

# Query families concurrently; the in-memory store has no connection limits
registry = build_registry(MastodonExporter(store, fan_out=True), timeout=10)

app = FastAPI(title="Mastodon Exporter Example")
app.include_router(create_exporter_router(registry))
