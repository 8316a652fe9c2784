"""Inventory ledger: the only component allowed to change stock records."""
import threading
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

from bookledger.errors import (
    BookNotFoundError,
    CatalogMissError,
    ConcurrentUpdateError,
    DuplicateRecordError,
    ValidationError,
)
from bookledger.models import BookMetadata, BookRecord, IncrementResult, DecrementResult
from bookledger.parse import normalize_isbn, parse_price, parse_price_updates
from bookledger.store import DocumentStore

logger = logging.getLogger(__name__)

# Conditional updates lost to writers in other processes before giving up.
MAX_CAS_ATTEMPTS = 5


class KeyedLocks:
    """One lock per key, created on demand and dropped when nobody holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class InventoryLedger:
    """
    Stock state machine per ISBN.

    A record exists exactly while its quantity is at least 1. The first
    increment of an unknown ISBN hydrates it from the catalog; the
    decrement that would reach zero deletes it. Operations on one ISBN
    are serialized by a per-ISBN lock, and quantity changes go through
    the store's conditional updates so that writers in other processes
    cannot cause lost updates either.
    """

    def __init__(self, store: DocumentStore, catalog):
        """
        Args:
            store: Document store that owns the records
            catalog: Object with ``lookup(isbn) -> BookMetadata | None``
        """
        self.store = store
        self.catalog = catalog
        self._locks = KeyedLocks()

    def get_record(self, isbn: str) -> BookRecord:
        """Current record for an ISBN, or BookNotFoundError."""
        isbn = normalize_isbn(isbn)
        doc = self.store.find_one(isbn)
        if doc is None:
            raise BookNotFoundError(isbn)
        return BookRecord.from_document(doc)

    def increment(self, isbn: str) -> IncrementResult:
        """
        Add one copy, creating the record from the catalog if needed.

        The catalog is asked at most once per call, and nothing is
        inserted unless that lookup succeeded.

        Raises:
            CatalogMissError: The ISBN is unknown to the catalog
            TransportError: The catalog or store failed
        """
        isbn = normalize_isbn(isbn)

        with self._locks.hold(isbn):
            metadata: Optional[BookMetadata] = None

            for _ in range(MAX_CAS_ATTEMPTS):
                doc = self.store.increment_quantity(isbn, 1)
                if doc is not None:
                    return IncrementResult(BookRecord.from_document(doc), was_created=False)

                if metadata is None:
                    metadata = self._hydrate(isbn)

                record = BookRecord.from_metadata(metadata)
                try:
                    doc = self.store.insert_one(record.to_document())
                except DuplicateRecordError:
                    logger.warning(f"{isbn} was created by another writer, retrying increment")
                    continue

                logger.info(f"Created {isbn} ({record.title}) with quantity 1")
                return IncrementResult(BookRecord.from_document(doc), was_created=True)

        raise ConcurrentUpdateError(f"Gave up incrementing {isbn} after {MAX_CAS_ATTEMPTS} attempts")

    def decrement(self, isbn: str) -> DecrementResult:
        """
        Remove one copy; the last copy deletes the record.

        Raises:
            BookNotFoundError: The ISBN is not in the inventory
        """
        isbn = normalize_isbn(isbn)

        with self._locks.hold(isbn):
            for _ in range(MAX_CAS_ATTEMPTS):
                doc = self.store.increment_quantity(isbn, -1, min_quantity=2)
                if doc is not None:
                    return DecrementResult(isbn, BookRecord.from_document(doc), deleted=False)

                if self.store.delete_one(isbn, quantity=1) is not None:
                    logger.info(f"Last copy of {isbn} removed, record deleted")
                    return DecrementResult(isbn, None, deleted=True)

                if self.store.find_one(isbn) is None:
                    raise BookNotFoundError(isbn)

                logger.warning(f"Quantity of {isbn} changed underneath decrement, retrying")

        raise ConcurrentUpdateError(f"Gave up decrementing {isbn} after {MAX_CAS_ATTEMPTS} attempts")

    def set_price(self, isbn: str, value) -> BookRecord:
        """
        Set the price of a stocked book.

        Unparsable values clear the price instead of failing; see
        ``parse.parse_price``.
        """
        isbn = normalize_isbn(isbn)
        price = parse_price(value)

        with self._locks.hold(isbn):
            doc = self.store.update_one(isbn, set_fields={"price": price})
        if doc is None:
            raise BookNotFoundError(isbn)
        return BookRecord.from_document(doc)

    def append_review(self, isbn: str, text: str) -> BookRecord:
        isbn = normalize_isbn(isbn)
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Review text must not be empty")

        with self._locks.hold(isbn):
            doc = self.store.update_one(isbn, push_fields={"reviews": text.strip()})
        if doc is None:
            raise BookNotFoundError(isbn)
        logger.info(f"Review added to {isbn}")
        return BookRecord.from_document(doc)

    def bulk_set_prices(self, updates: List[dict]) -> int:
        """
        Apply many price updates at once.

        Args:
            updates: List of {"isbn": ..., "price": ...}; ISBNs that are
                not stocked are skipped

        Returns:
            Number of records whose price changed
        """
        pairs = parse_price_updates(updates)
        modified = self.store.set_prices(pairs)
        logger.info(f"Bulk price update: {len(pairs)} requested, {modified} modified")
        return modified

    def _hydrate(self, isbn: str) -> BookMetadata:
        logger.info(f"{isbn} not stocked yet, fetching catalog metadata")
        metadata = self.catalog.lookup(isbn)
        if metadata is None:
            logger.warning(f"Catalog has no entry for {isbn}")
            raise CatalogMissError(isbn)
        return metadata
