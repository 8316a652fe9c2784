"""Wire the store, the catalog client, the ledger and the search view."""
import logging

from bookledger.client import GoogleBooksClient
from bookledger.config import Config
from bookledger.database import PostgresStore
from bookledger.ledger import InventoryLedger
from bookledger.search import SearchView
from bookledger.store import DocumentStore, InMemoryStore

logger = logging.getLogger(__name__)


def open_store(config: Config) -> DocumentStore:
    """Create and initialize the configured store backend."""
    if config.STORE_BACKEND == "memory":
        store = InMemoryStore()
    elif config.STORE_BACKEND == "postgres":
        store = PostgresStore(config.DATABASE_URL, config.DB_MIN_CONN, config.DB_MAX_CONN)
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND}")

    store.init_schema()
    return store


class InventoryApp:
    """Owns the store and catalog client for the lifetime of a process."""

    def __init__(self, config: Config, store: DocumentStore = None, catalog=None):
        self.config = config
        self.store = store if store is not None else open_store(config)
        self.catalog = catalog if catalog is not None else GoogleBooksClient(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES,
            base_backoff=config.DEFAULT_BACKOFF
        )
        self.ledger = InventoryLedger(self.store, self.catalog)
        self.search = SearchView(self.store, max_page_size=config.MAX_PAGE_SIZE)
        logger.info(f"Inventory ready ({config.STORE_BACKEND} store)")

    def close(self):
        """Release the catalog session and the store."""
        close_catalog = getattr(self.catalog, "close", None)
        if close_catalog is not None:
            close_catalog()
        self.store.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
