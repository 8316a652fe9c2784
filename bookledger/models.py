"""Data models for inventory records."""
from dataclasses import dataclass, field, fields, asdict
from decimal import Decimal
from typing import Optional, List, Dict, Any


@dataclass
class BookMetadata:
    """Normalized catalog entry for one ISBN."""
    isbn: str
    title: str
    slug: str
    authors: List[str]
    publisher: str
    published_date: str
    description: str
    page_count: int
    thumbnail: Optional[str]

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"


@dataclass
class BookRecord:
    """One stocked ISBN: hydrated metadata plus inventory state."""
    isbn: str
    title: str
    slug: str
    authors: List[str] = field(default_factory=list)
    publisher: str = "N/A"
    published_date: str = "N/A"
    description: str = ""
    page_count: int = 0
    thumbnail: Optional[str] = None
    price: Optional[Decimal] = None
    quantity: int = 1
    reviews: List[str] = field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: BookMetadata) -> "BookRecord":
        """Start a fresh record with a single copy in stock."""
        return cls(
            isbn=metadata.isbn,
            title=metadata.title,
            slug=metadata.slug,
            authors=list(metadata.authors),
            publisher=metadata.publisher,
            published_date=metadata.published_date,
            description=metadata.description,
            page_count=metadata.page_count,
            thumbnail=metadata.thumbnail,
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "BookRecord":
        """Build a record from a stored document, ignoring backend columns."""
        known = {f.name for f in fields(cls)}
        data = {key: value for key, value in doc.items() if key in known}
        data["authors"] = list(data.get("authors") or [])
        data["reviews"] = list(data.get("reviews") or [])
        return cls(**data)

    def to_document(self) -> Dict[str, Any]:
        """Shape persisted by the document stores."""
        return asdict(self)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation (price as a string)."""
        data = asdict(self)
        data["price"] = str(self.price) if self.price is not None else None
        return data

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"


@dataclass
class IncrementResult:
    record: BookRecord
    was_created: bool


@dataclass
class DecrementResult:
    """Outcome of a decrement; ``record`` is None once the book is deleted."""
    isbn: str
    record: Optional[BookRecord]
    deleted: bool


@dataclass
class Page:
    """One page of the inventory listing."""
    items: List[BookRecord]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int
