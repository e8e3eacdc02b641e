"""Shared test fixtures for all test modules."""

import logging
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path

import httpx
import pytest

from mastodon_exporter.adapters.storage.sqlite import MASTODON_SCHEMA, SQLiteReportStore
from tests.helpers import StubStore


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog sees package records."""
    yield
    logger = logging.getLogger("mastodon_exporter")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def stub_store() -> Callable[..., StubStore]:
    """Factory fixture for StubStore instances."""
    return StubStore


@pytest.fixture
def mastodon_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite store tests."""
    return str(tmp_path / "mastodon.db")


@pytest.fixture
async def sqlite_store(mastodon_db_path: str) -> AsyncGenerator[SQLiteReportStore]:
    """SQLite store with an empty Mastodon schema."""
    store = SQLiteReportStore(mastodon_db_path, schema=MASTODON_SCHEMA)
    yield store
    await store.close()


@pytest.fixture
def asgi_test_client() -> Callable[..., httpx.AsyncClient]:
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(registry)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """

    def _get_client(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
