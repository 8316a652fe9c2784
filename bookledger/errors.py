"""Error kinds raised by the ledger, the catalog client and the stores."""


class BookLedgerError(Exception):
    """Base class for every failure the ledger surfaces to a caller."""

    kind = "error"
    retryable = False


class BookNotFoundError(BookLedgerError):
    """The operation needs a record that is not in the inventory."""

    kind = "not_found"

    def __init__(self, isbn: str):
        super().__init__(f"Book with ISBN {isbn} not found in inventory")
        self.isbn = isbn


class CatalogMissError(BookLedgerError):
    """The catalog has no book for this ISBN."""

    kind = "catalog_miss"

    def __init__(self, isbn: str):
        super().__init__(f"No catalog entry for ISBN {isbn}")
        self.isbn = isbn


class ValidationError(BookLedgerError):
    """Malformed input, e.g. an empty review or a bad bulk payload."""

    kind = "validation_error"


class TransportError(BookLedgerError):
    """The store or the catalog failed at the infrastructure level."""

    kind = "transport_error"
    retryable = True


class ConcurrentUpdateError(TransportError):
    """A conditional update kept losing to other writers."""

    kind = "concurrent_update"


class DuplicateRecordError(BookLedgerError):
    """Insert hit an existing ISBN."""

    kind = "duplicate_record"

    def __init__(self, isbn: str):
        super().__init__(f"Book with ISBN {isbn} already exists")
        self.isbn = isbn
