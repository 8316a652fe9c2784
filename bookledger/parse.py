"""Parse Google Books responses and normalize user input."""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Any, List, Optional, Tuple

from bookledger.errors import ValidationError
from bookledger.models import BookMetadata
from bookledger.slugify import slugify

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available."
NOT_AVAILABLE = "N/A"

# Prices are stored as NUMERIC(12, 2)
CENT = Decimal("0.01")
MAX_PRICE = Decimal("10000000000")


def normalize_isbn(isbn) -> str:
    """
    Canonical form of an ISBN key.

    Args:
        isbn: Raw ISBN, possibly with hyphens or spaces

    Returns:
        ISBN with surrounding whitespace, inner hyphens and spaces removed

    Raises:
        ValidationError: If nothing is left after normalization
    """
    if not isinstance(isbn, str):
        raise ValidationError(f"ISBN must be a string, got {type(isbn).__name__}")

    normalized = isbn.strip().replace("-", "").replace(" ", "")
    if not normalized:
        raise ValidationError("ISBN must not be empty")
    return normalized


def parse_volume(isbn: str, response_json: Dict[str, Any]) -> Optional[BookMetadata]:
    """
    Parse a Google Books volumes response for an ISBN query.

    Args:
        isbn: The ISBN that was looked up (kept as the record key)
        response_json: Complete API response JSON

    Returns:
        BookMetadata for the first item, or None if there are no items
    """
    items = response_json.get("items") or []
    if not items:
        return None

    volume_info = items[0].get("volumeInfo") or {}

    title = volume_info.get("title") or "Unknown Title"
    image_links = volume_info.get("imageLinks") or {}
    thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")

    return BookMetadata(
        isbn=isbn,
        title=title,
        slug=slugify(title),
        authors=list(volume_info.get("authors") or []),
        publisher=volume_info.get("publisher") or NOT_AVAILABLE,
        published_date=volume_info.get("publishedDate") or NOT_AVAILABLE,
        description=volume_info.get("description") or NO_DESCRIPTION,
        page_count=int(volume_info.get("pageCount") or 0),
        thumbnail=thumbnail,
    )


def parse_price(value) -> Optional[Decimal]:
    """
    Leniently parse a price.

    Anything that is not a finite, non-negative number below
    ``MAX_PRICE`` becomes None instead of being rejected, so a bad cell
    in a bulk update clears that book's price rather than failing the
    whole batch. Accepted prices are rounded half-up to cents, the
    precision every store keeps.

    Args:
        value: str, int, float, Decimal or None

    Returns:
        Decimal price with two decimal places, or None
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None

    # Reject anything that would round up to MAX_PRICE
    if not price.is_finite() or price < 0 or price >= MAX_PRICE - CENT / 2:
        return None
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price_updates(updates) -> List[Tuple[str, Optional[Decimal]]]:
    """
    Validate a bulk price payload.

    Args:
        updates: List of {"isbn": ..., "price": ...} mappings

    Returns:
        List of (isbn, price) pairs; later entries for the same ISBN win

    Raises:
        ValidationError: If the payload is not a non-empty list of mappings
            that each carry an ISBN
    """
    if not isinstance(updates, list) or not updates:
        raise ValidationError("Price updates must be a non-empty list")

    pairs: Dict[str, Optional[Decimal]] = {}
    for index, update in enumerate(updates):
        if not isinstance(update, dict) or "isbn" not in update:
            raise ValidationError(f"Update #{index} must be an object with an 'isbn' field")

        isbn = normalize_isbn(update["isbn"])
        price = parse_price(update.get("price"))
        if price is None and update.get("price") is not None:
            logger.warning(f"Unparsable price {update.get('price')!r} for {isbn}, clearing it")
        pairs[isbn] = price

    return list(pairs.items())
