"""Document store contract and the in-memory backend."""
import copy
import threading
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List, Dict, Any, Iterable, Tuple

from bookledger.errors import DuplicateRecordError, ValidationError

logger = logging.getLogger(__name__)

# Fields the ledger may overwrite or append to after creation.
SETTABLE_FIELDS = ("price",)
APPENDABLE_FIELDS = ("reviews",)


class DocumentStore(ABC):
    """
    ISBN-keyed collection of book documents.

    Every method is a single atomic step against the backend; none of
    them read and then write across two round trips.
    """

    def init_schema(self):
        """Prepare the backend (no-op unless overridden)."""

    @abstractmethod
    def find_one(self, isbn: str) -> Optional[Dict[str, Any]]:
        """Return the document for an ISBN, or None."""

    @abstractmethod
    def increment_quantity(
        self,
        isbn: str,
        delta: int,
        min_quantity: int = 1
    ) -> Optional[Dict[str, Any]]:
        """
        Add delta to quantity if the document exists with quantity >= min_quantity.

        Returns:
            The updated document, or None if nothing matched
        """

    @abstractmethod
    def insert_one(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new document.

        Raises:
            DuplicateRecordError: If the ISBN is already stored
        """

    @abstractmethod
    def delete_one(self, isbn: str, quantity: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Delete a document, optionally only when its quantity matches.

        Returns:
            The deleted document, or None if nothing matched
        """

    @abstractmethod
    def update_one(
        self,
        isbn: str,
        set_fields: Optional[Dict[str, Any]] = None,
        push_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Overwrite settable fields and append to list fields.

        Returns:
            The updated document, or None if the ISBN is not stored
        """

    @abstractmethod
    def set_prices(self, pairs: Iterable[Tuple[str, Optional[Decimal]]]) -> int:
        """
        Set prices for many ISBNs.

        Returns:
            Number of documents whose price actually changed
        """

    @abstractmethod
    def count_documents(self) -> int:
        """Number of stored documents."""

    @abstractmethod
    def total_quantity(self) -> int:
        """Sum of quantities over all documents."""

    @abstractmethod
    def find_page(self, skip: int, limit: int) -> List[Dict[str, Any]]:
        """Documents in insertion order, after skipping `skip`, at most `limit`."""

    @abstractmethod
    def find_by_slug(self, fragment: str) -> List[Dict[str, Any]]:
        """Documents whose slug contains fragment, ignoring case."""

    def close(self):
        """Release backend resources (no-op unless overridden)."""

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def check_update_fields(set_fields, push_fields):
    """Reject updates to anything but the mutable fields."""
    for name in set_fields or {}:
        if name not in SETTABLE_FIELDS:
            raise ValidationError(f"Field '{name}' cannot be updated")
    for name in push_fields or {}:
        if name not in APPENDABLE_FIELDS:
            raise ValidationError(f"Field '{name}' cannot be appended to")


class InMemoryStore(DocumentStore):
    """Dict-backed store guarded by one lock; used for tests and local runs."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find_one(self, isbn):
        with self._lock:
            doc = self._docs.get(isbn)
            return copy.deepcopy(doc) if doc is not None else None

    def increment_quantity(self, isbn, delta, min_quantity=1):
        with self._lock:
            doc = self._docs.get(isbn)
            if doc is None or doc["quantity"] < min_quantity:
                return None
            doc["quantity"] += delta
            return copy.deepcopy(doc)

    def insert_one(self, doc):
        with self._lock:
            if doc["isbn"] in self._docs:
                raise DuplicateRecordError(doc["isbn"])
            self._docs[doc["isbn"]] = copy.deepcopy(doc)
            logger.info(f"Inserted {doc['isbn']}")
            return copy.deepcopy(doc)

    def delete_one(self, isbn, quantity=None):
        with self._lock:
            doc = self._docs.get(isbn)
            if doc is None or (quantity is not None and doc["quantity"] != quantity):
                return None
            return self._docs.pop(isbn)

    def update_one(self, isbn, set_fields=None, push_fields=None):
        check_update_fields(set_fields, push_fields)
        with self._lock:
            doc = self._docs.get(isbn)
            if doc is None:
                return None
            doc.update(set_fields or {})
            for name, value in (push_fields or {}).items():
                doc[name] = list(doc.get(name) or []) + [value]
            return copy.deepcopy(doc)

    def set_prices(self, pairs):
        modified = 0
        with self._lock:
            for isbn, price in pairs:
                doc = self._docs.get(isbn)
                if doc is None or doc.get("price") == price:
                    continue
                doc["price"] = price
                modified += 1
        return modified

    def count_documents(self):
        with self._lock:
            return len(self._docs)

    def total_quantity(self):
        with self._lock:
            return sum(doc["quantity"] for doc in self._docs.values())

    def find_page(self, skip, limit):
        with self._lock:
            docs = list(self._docs.values())[skip:skip + limit]
            return copy.deepcopy(docs)

    def find_by_slug(self, fragment):
        needle = fragment.lower()
        with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._docs.values()
                if needle in doc["slug"].lower()
            ]
