"""Contract tests run against every document store backend."""
from decimal import Decimal

import pytest

from bookledger.errors import DuplicateRecordError, ValidationError
from bookledger.models import BookRecord
from fakes import make_metadata


def insert(store, isbn, title="Yüzüklerin Efendisi", quantity=1):
    record = BookRecord.from_metadata(make_metadata(isbn, title=title))
    record.quantity = quantity
    return store.insert_one(record.to_document())


def test_insert_and_find(store):
    """Test that an inserted document round-trips through find_one."""
    insert(store, "123")

    doc = store.find_one("123")

    assert doc["isbn"] == "123"
    assert doc["slug"] == "yuzuklerin-efendisi"
    assert doc["authors"] == ["J.R.R. Tolkien"]
    assert doc["price"] is None
    assert doc["reviews"] == []
    assert store.find_one("404") is None


def test_insert_duplicate_raises(store):
    """Test the unique ISBN key."""
    insert(store, "123")

    with pytest.raises(DuplicateRecordError):
        insert(store, "123")


def test_increment_quantity_conditions(store):
    """Test the conditional atomic increment."""
    insert(store, "123", quantity=2)

    assert store.increment_quantity("123", 1)["quantity"] == 3
    assert store.increment_quantity("123", -1, min_quantity=2)["quantity"] == 2
    assert store.increment_quantity("123", -1, min_quantity=3) is None
    assert store.increment_quantity("404", 1) is None
    assert store.find_one("123")["quantity"] == 2


def test_delete_one_conditional(store):
    """Test that delete honours the expected quantity."""
    insert(store, "123", quantity=2)

    assert store.delete_one("123", quantity=1) is None
    assert store.find_one("123") is not None

    deleted = store.delete_one("123", quantity=2)
    assert deleted["isbn"] == "123"
    assert store.find_one("123") is None
    assert store.delete_one("123") is None


def test_update_one_set_and_push(store):
    """Test overwriting the price and appending reviews."""
    insert(store, "123")

    store.update_one("123", set_fields={"price": Decimal("12.50")})
    store.update_one("123", push_fields={"reviews": "Harika"})
    doc = store.update_one("123", push_fields={"reviews": "Uzun ama güzel"})

    assert doc["price"] == Decimal("12.50")
    assert doc["reviews"] == ["Harika", "Uzun ama güzel"]
    assert store.update_one("404", set_fields={"price": None}) is None


def test_update_one_rejects_immutable_fields(store):
    """Test that hydrated fields and quantity cannot be overwritten."""
    insert(store, "123")

    with pytest.raises(ValidationError):
        store.update_one("123", set_fields={"quantity": 0})
    with pytest.raises(ValidationError):
        store.update_one("123", push_fields={"authors": "Someone"})


def test_set_prices_counts_changes(store):
    """Test modified count semantics of bulk price updates."""
    insert(store, "123")
    insert(store, "999", title="Kürk Mantolu Madonna")

    assert store.set_prices([("123", Decimal("19.90")), ("999", None), ("404", Decimal("1"))]) == 1
    assert store.set_prices([("123", Decimal("19.90"))]) == 0
    assert store.set_prices([("123", None), ("999", Decimal("5"))]) == 2


def test_counts_and_pages(store):
    """Test count, total quantity and insertion-ordered pages."""
    for i in range(5):
        insert(store, f"isbn-{i}", title=f"Book {i}", quantity=i + 1)

    assert store.count_documents() == 5
    assert store.total_quantity() == 15
    assert [d["isbn"] for d in store.find_page(0, 2)] == ["isbn-0", "isbn-1"]
    assert [d["isbn"] for d in store.find_page(4, 2)] == ["isbn-4"]
    assert store.find_page(10, 2) == []


def test_empty_store_totals(store):
    """Test totals on an empty store."""
    assert store.count_documents() == 0
    assert store.total_quantity() == 0


def test_find_by_slug_is_case_insensitive_substring(store):
    """Test slug search matching."""
    insert(store, "1", title="Yüzüklerin Efendisi")
    insert(store, "2", title="Yüzüklerin Kardeşliği")
    insert(store, "3", title="Hobbit")

    assert [d["isbn"] for d in store.find_by_slug("YUZUK")] == ["1", "2"]
    assert [d["isbn"] for d in store.find_by_slug("bbi")] == ["3"]
    assert store.find_by_slug("zzz") == []


def test_returned_documents_are_copies(memory_store):
    """Test that callers cannot mutate stored state through results."""
    insert(memory_store, "123")

    doc = memory_store.find_one("123")
    doc["quantity"] = 99
    doc["reviews"].append("sneaky")

    assert memory_store.find_one("123")["quantity"] == 1
    assert memory_store.find_one("123")["reviews"] == []
