"""Tests for parsing functions."""
from decimal import Decimal

import pytest

from bookledger.errors import ValidationError
from bookledger.parse import (
    NO_DESCRIPTION,
    normalize_isbn,
    parse_price,
    parse_price_updates,
    parse_volume,
)


def test_parse_volume_complete():
    """Test parsing a volume with all fields present."""
    response = {
        "totalItems": 1,
        "items": [{
            "id": "abc123",
            "volumeInfo": {
                "title": "Yüzüklerin Efendisi",
                "authors": ["J.R.R. Tolkien"],
                "publisher": "Metis",
                "publishedDate": "2002-01-01",
                "description": "Orta Dünya",
                "pageCount": 1216,
                "imageLinks": {
                    "smallThumbnail": "http://example.com/small.jpg",
                    "thumbnail": "http://example.com/thumb.jpg"
                }
            }
        }]
    }

    book = parse_volume("9789753425292", response)

    assert book is not None
    assert book.isbn == "9789753425292"
    assert book.title == "Yüzüklerin Efendisi"
    assert book.slug == "yuzuklerin-efendisi"
    assert book.authors == ["J.R.R. Tolkien"]
    assert book.publisher == "Metis"
    assert book.page_count == 1216
    assert book.thumbnail == "http://example.com/thumb.jpg"


def test_parse_volume_missing_fields():
    """Test that missing optional fields get their defaults."""
    response = {"items": [{"volumeInfo": {"title": "Mystery Book"}}]}

    book = parse_volume("111", response)

    assert book.authors == []
    assert book.publisher == "N/A"
    assert book.published_date == "N/A"
    assert book.description == NO_DESCRIPTION
    assert book.page_count == 0
    assert book.thumbnail is None


def test_parse_volume_small_thumbnail_fallback():
    """Test that smallThumbnail is used when thumbnail is missing."""
    response = {"items": [{"volumeInfo": {
        "title": "T", "imageLinks": {"smallThumbnail": "http://example.com/s.jpg"}
    }}]}

    assert parse_volume("1", response).thumbnail == "http://example.com/s.jpg"


def test_parse_volume_no_items():
    """Test that an empty result means no match."""
    assert parse_volume("1", {"totalItems": 0}) is None
    assert parse_volume("1", {"items": []}) is None


def test_parse_volume_untitled():
    """Test the placeholder title."""
    book = parse_volume("1", {"items": [{"volumeInfo": {}}]})
    assert book.title == "Unknown Title"
    assert book.slug == "unknown-title"


def test_normalize_isbn():
    """Test hyphen and whitespace removal."""
    assert normalize_isbn(" 978-0-261-10325-2 ") == "9780261103252"
    assert normalize_isbn("978 0261103252") == "9780261103252"


@pytest.mark.parametrize("bad", ["", "   ", "--", None, 978])
def test_normalize_isbn_rejects_empty(bad):
    """Test that empty or non-string ISBNs are rejected."""
    with pytest.raises(ValidationError):
        normalize_isbn(bad)


@pytest.mark.parametrize("value,expected", [
    ("19.90", Decimal("19.90")),
    (" 7 ", Decimal("7")),
    (12, Decimal("12")),
    (4.5, Decimal("4.5")),
    ("0", Decimal("0")),
    ("bad", None),
    ("", None),
    (None, None),
    ("NaN", None),
    ("Infinity", None),
    ("-3", None),
    (True, None),
])
def test_parse_price_is_lenient(value, expected):
    """Test that unparsable prices become None instead of raising."""
    assert parse_price(value) == expected


def test_parse_price_updates():
    """Test the bulk payload with a bad price."""
    pairs = parse_price_updates([
        {"isbn": "123", "price": "19.90"},
        {"isbn": "999", "price": "bad"},
    ])

    assert pairs == [("123", Decimal("19.90")), ("999", None)]


def test_parse_price_updates_last_wins():
    """Test that repeated ISBNs keep the last price."""
    pairs = parse_price_updates([
        {"isbn": "123", "price": "1"},
        {"isbn": "1-2-3", "price": "2"},
    ])

    assert pairs == [("123", Decimal("2"))]


@pytest.mark.parametrize("payload", [
    [],
    {"isbn": "123", "price": "1"},
    "123",
    None,
    [{"price": "1"}],
    ["123"],
    [{"isbn": "", "price": "1"}],
])
def test_parse_price_updates_rejects_malformed(payload):
    """Test that malformed payloads raise ValidationError."""
    with pytest.raises(ValidationError):
        parse_price_updates(payload)


@pytest.mark.parametrize("value,expected", [
    ("19.999", "20.00"),
    ("19.994", "19.99"),
    ("0.005", "0.01"),
    (4.5, "4.50"),
    ("7", "7.00"),
    ("9999999999.99", "9999999999.99"),
])
def test_parse_price_rounds_to_cents(value, expected):
    """Test that prices keep exactly two decimal places."""
    assert str(parse_price(value)) == expected


@pytest.mark.parametrize("value", ["1e15", "10000000000", "9999999999.995", "1e400"])
def test_parse_price_out_of_range(value):
    """Test that prices too large to store are treated as unparsable."""
    assert parse_price(value) is None
