"""Read-only views over the inventory: slug search, pages, totals."""
import math
import logging
from typing import Iterator, List, Dict

from bookledger.errors import ValidationError
from bookledger.models import BookRecord, Page
from bookledger.slugify import slugify
from bookledger.store import DocumentStore

logger = logging.getLogger(__name__)


class SearchView:
    """Queries that never touch the catalog or change a record."""

    def __init__(self, store: DocumentStore, max_page_size: int = 100):
        self.store = store
        self.max_page_size = max_page_size

    def search_by_slug(self, fragment: str) -> List[BookRecord]:
        """
        Find books whose slug contains a fragment (case-insensitive).

        Args:
            fragment: Literal substring to look for

        Returns:
            Matching records in insertion order (possibly empty)
        """
        if not isinstance(fragment, str) or not fragment.strip():
            raise ValidationError("Search text must not be empty")

        docs = self.store.find_by_slug(fragment.strip())
        logger.info(f"Slug search '{fragment}': {len(docs)} matches")
        return [BookRecord.from_document(doc) for doc in docs]

    def search(self, text: str) -> List[BookRecord]:
        """Slugify free text (e.g. a typed title) and search by slug."""
        fragment = slugify(text)
        if not fragment:
            raise ValidationError(f"Nothing searchable in {text!r}")
        return self.search_by_slug(fragment)

    def list_page(self, page: int = 1, page_size: int = 10) -> Page:
        """
        One page of the inventory.

        Args:
            page: 1-based page number
            page_size: Records per page

        Returns:
            Page with items and pagination totals
        """
        if page < 1:
            raise ValidationError("Page must be 1 or greater")
        if page_size < 1 or page_size > self.max_page_size:
            raise ValidationError(f"Page size must be between 1 and {self.max_page_size}")

        total = self.store.count_documents()
        docs = self.store.find_page((page - 1) * page_size, page_size)

        return Page(
            items=[BookRecord.from_document(doc) for doc in docs],
            total_count=total,
            total_pages=math.ceil(total / page_size),
            current_page=page,
            page_size=page_size,
        )

    def iter_all(self, batch_size: int = 100) -> Iterator[BookRecord]:
        """Walk every record, one store page at a time."""
        skip = 0
        while True:
            docs = self.store.find_page(skip, batch_size)
            for doc in docs:
                yield BookRecord.from_document(doc)
            if len(docs) < batch_size:
                return
            skip += batch_size

    def stats(self) -> Dict[str, int]:
        """Inventory totals."""
        priced = sum(1 for record in self.iter_all() if record.price is not None)
        return {
            "total_records": self.store.count_documents(),
            "total_units": self.store.total_quantity(),
            "priced_records": priced,
        }
