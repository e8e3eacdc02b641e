"""Storage adapters implementing ReportStorePort."""

from urllib.parse import urlsplit

from mastodon_exporter.adapters.storage.in_memory import (
    Account,
    InMemoryReportStore,
    Report,
)
from mastodon_exporter.adapters.storage.postgres import PostgresReportStore
from mastodon_exporter.adapters.storage.sqlite import (
    MASTODON_SCHEMA,
    SQLiteReportStore,
)
from mastodon_exporter.core.errors import StoreConnectionError
from mastodon_exporter.core.ports import ReportStorePort

__all__ = [
    "MASTODON_SCHEMA",
    "Account",
    "InMemoryReportStore",
    "PostgresReportStore",
    "Report",
    "SQLiteReportStore",
    "open_store",
    "sqlite_path",
]


def sqlite_path(url: str) -> str:
    """Return the database path of a sqlite:// URL.

    sqlite:///data.db is relative, sqlite:////var/data.db is absolute, and
    sqlite://:memory: (or an empty path) is an in-memory database.
    """
    rest = url[len("sqlite://") :]
    if rest.startswith("/"):
        rest = rest[1:]
    return rest or ":memory:"


async def open_store(url: str) -> ReportStorePort:
    """Open and ping the store named by a database URL.

    Supported schemes: postgres://, postgresql://, sqlite:///path and
    sqlite://:memory:.

    Raises:
        StoreConnectionError: Unsupported scheme, or the store is unreachable.
    """
    scheme = urlsplit(url).scheme
    store: ReportStorePort
    if scheme in ("postgres", "postgresql"):
        store = await PostgresReportStore.connect(url)
    elif scheme == "sqlite":
        store = SQLiteReportStore(sqlite_path(url))
    else:
        raise StoreConnectionError(f"unsupported database URL scheme: {scheme!r}")
    try:
        await store.ping()
    except StoreConnectionError:
        await store.close()
        raise
    return store
