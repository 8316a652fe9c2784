"""Shared fixtures: stores, a fake catalog and a ledger wired to them."""
import os

import pytest

from bookledger.ledger import InventoryLedger
from bookledger.search import SearchView
from bookledger.store import InMemoryStore
from fakes import FakeCatalog, make_metadata


def _postgres_store():
    from bookledger.database import PostgresStore

    store = PostgresStore(os.environ["TEST_DATABASE_URL"])
    store.init_schema()
    with store._cursor() as cur:
        cur.execute("TRUNCATE books")
    return store


@pytest.fixture(params=["memory", "postgres"])
def store(request):
    """Every store backend; PostgreSQL only when TEST_DATABASE_URL is set."""
    if request.param == "memory":
        backend = InMemoryStore()
    else:
        if not os.environ.get("TEST_DATABASE_URL"):
            pytest.skip("TEST_DATABASE_URL not set")
        backend = _postgres_store()
    yield backend
    backend.close()


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def catalog():
    return FakeCatalog({
        "9789753425292": make_metadata("9789753425292"),
        "9780261103252": make_metadata("9780261103252", title="The Lord of the Rings"),
        "123": make_metadata("123", title="Çölde Öykü", authors=["Ayşe Kulin"]),
        "999": make_metadata("999", title="Kürk Mantolu Madonna", authors=["Sabahattin Ali"]),
    })


@pytest.fixture
def ledger(store, catalog):
    """Ledger over every store backend."""
    return InventoryLedger(store, catalog)


@pytest.fixture
def search(store):
    return SearchView(store)
