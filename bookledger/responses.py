"""Tagged response variants for presentation layers."""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from bookledger.errors import BookLedgerError
from bookledger.models import BookRecord, DecrementResult, IncrementResult, Page


@dataclass(frozen=True)
class Single:
    record: BookRecord
    created: bool = False
    kind: str = field(default="single", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "created": self.created, "book": self.record.to_dict()}


@dataclass(frozen=True)
class Many:
    records: List[BookRecord]
    total_count: Optional[int] = None
    total_pages: Optional[int] = None
    current_page: Optional[int] = None
    kind: str = field(default="many", init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {"kind": self.kind, "books": [r.to_dict() for r in self.records]}
        if self.total_count is not None:
            data.update(
                total_count=self.total_count,
                total_pages=self.total_pages,
                current_page=self.current_page,
            )
        return data


@dataclass(frozen=True)
class Removed:
    """The last copy was taken out and the record no longer exists."""
    isbn: str
    kind: str = field(default="removed", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "isbn": self.isbn}


@dataclass(frozen=True)
class Modified:
    count: int
    kind: str = field(default="modified", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "modified_count": self.count}


@dataclass(frozen=True)
class Failure:
    error: str
    message: str
    retryable: bool = False
    kind: str = field(default="failure", init=False)

    @classmethod
    def from_error(cls, error: BookLedgerError) -> "Failure":
        return cls(error=error.kind, message=str(error), retryable=error.retryable)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "error": self.error,
            "message": self.message,
            "retryable": self.retryable,
        }


def to_response(result):
    """Wrap a ledger or search result in its tagged variant."""
    if isinstance(result, IncrementResult):
        return Single(result.record, created=result.was_created)
    if isinstance(result, DecrementResult):
        return Removed(result.isbn) if result.deleted else Single(result.record)
    if isinstance(result, BookRecord):
        return Single(result)
    if isinstance(result, Page):
        return Many(result.items, result.total_count, result.total_pages, result.current_page)
    if isinstance(result, list):
        return Many(result)
    if isinstance(result, int):
        return Modified(result)
    raise TypeError(f"No response variant for {type(result).__name__}")


def respond(operation, *args, **kwargs):
    """Run an operation and return a tagged response; ledger errors become Failure."""
    try:
        return to_response(operation(*args, **kwargs))
    except BookLedgerError as e:
        return Failure.from_error(e)
