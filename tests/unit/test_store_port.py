"""Tests for the ReportStorePort protocol."""

import pytest

from mastodon_exporter.adapters.storage import (
    InMemoryReportStore,
    PostgresReportStore,
    SQLiteReportStore,
)
from mastodon_exporter.core.ports import ReportStorePort
from tests.helpers import StubStore

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


class TestReportStorePort:
    """Concrete stores satisfy the port structurally."""

    def test_in_memory_store_satisfies_port(self) -> None:
        assert isinstance(InMemoryReportStore(), ReportStorePort)

    def test_sqlite_store_satisfies_port(self) -> None:
        assert isinstance(SQLiteReportStore(":memory:"), ReportStorePort)

    def test_postgres_store_class_defines_port_methods(self) -> None:
        for name in (
            "count_reports",
            "resolution_durations",
            "count_accounts",
            "count_posts",
            "ping",
            "close",
        ):
            assert callable(getattr(PostgresReportStore, name))

    def test_stub_store_satisfies_port(self) -> None:
        assert isinstance(StubStore(), ReportStorePort)

    def test_object_without_methods_does_not_satisfy_port(self) -> None:
        class NotAStore:
            async def count_reports(self) -> None:
                return None

        assert not isinstance(NotAStore(), ReportStorePort)
