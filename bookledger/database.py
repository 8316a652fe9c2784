"""PostgreSQL document store for book inventory."""
import psycopg2
import psycopg2.errors
import psycopg2.extras
from psycopg2 import pool, sql
from contextlib import contextmanager
from typing import Optional, List, Dict, Any
import logging

from bookledger.errors import DuplicateRecordError, TransportError, ValidationError
from bookledger.store import DocumentStore, check_update_fields

logger = logging.getLogger(__name__)

# Columns handed back to the ledger; bookkeeping timestamps stay internal.
DOCUMENT_COLUMNS = (
    "isbn", "title", "slug", "authors", "publisher", "published_date",
    "description", "page_count", "thumbnail", "price", "quantity", "reviews",
)
_RETURNING = sql.SQL(", ").join(sql.Identifier(c) for c in DOCUMENT_COLUMNS)
_ORDER = sql.SQL("ORDER BY created_at, isbn")


class PostgresStore(DocumentStore):
    """PostgreSQL store with a thread-safe connection pool."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.OperationalError as e:
            raise TransportError(f"Could not connect to database: {e}") from e

        logger.info("Database connection pool created successfully")

    @contextmanager
    def _cursor(self):
        """Cursor in its own transaction; committed on success, rolled back on error."""
        try:
            conn = self.connection_pool.getconn()
        except pool.PoolError as e:
            raise TransportError(f"No database connection available: {e}") from e

        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                yield cur
            conn.commit()
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            self._rollback(conn)
            logger.error(f"Database error: {e}")
            raise TransportError(f"Database unavailable: {e}") from e
        except psycopg2.DataError as e:
            self._rollback(conn)
            raise ValidationError(f"Value rejected by database: {e}") from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            # Broken connections are discarded instead of going back to the pool
            self.connection_pool.putconn(conn, close=bool(conn.closed))

    @staticmethod
    def _rollback(conn):
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"Rollback failed: {e}")

    def init_schema(self):
        """Create the books table if it doesn't exist."""
        with self._cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS books (
                    isbn VARCHAR(32) PRIMARY KEY,
                    title TEXT NOT NULL,
                    slug TEXT NOT NULL,
                    authors TEXT[] NOT NULL DEFAULT '{}',
                    publisher TEXT,
                    published_date VARCHAR(50),
                    description TEXT,
                    page_count INTEGER NOT NULL DEFAULT 0,
                    thumbnail TEXT,
                    price NUMERIC(12, 2),
                    quantity INTEGER NOT NULL CHECK (quantity >= 1),
                    reviews TEXT[] NOT NULL DEFAULT '{}',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Indexes for search and listing
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_books_slug
                ON books (slug)
            """)

            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_books_created
                ON books (created_at, isbn)
            """)

        logger.info("Database schema initialized successfully")

    def find_one(self, isbn):
        with self._cursor() as cur:
            cur.execute(
                sql.SQL("SELECT {} FROM books WHERE isbn = %s").format(_RETURNING),
                (isbn,)
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def increment_quantity(self, isbn, delta, min_quantity=1):
        with self._cursor() as cur:
            cur.execute(
                sql.SQL("""
                    UPDATE books
                    SET quantity = quantity + %s, updated_at = CURRENT_TIMESTAMP
                    WHERE isbn = %s AND quantity >= %s
                    RETURNING {}
                """).format(_RETURNING),
                (delta, isbn, min_quantity)
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def insert_one(self, doc):
        columns = [c for c in DOCUMENT_COLUMNS if c in doc]
        query = sql.SQL("INSERT INTO books ({}) VALUES ({}) RETURNING {}").format(
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
            _RETURNING,
        )
        try:
            with self._cursor() as cur:
                cur.execute(query, [doc[c] for c in columns])
                return dict(cur.fetchone())
        except psycopg2.errors.UniqueViolation as e:
            raise DuplicateRecordError(doc["isbn"]) from e

    def delete_one(self, isbn, quantity=None):
        query = sql.SQL("DELETE FROM books WHERE isbn = %s")
        params = [isbn]
        if quantity is not None:
            query = query + sql.SQL(" AND quantity = %s")
            params.append(quantity)

        with self._cursor() as cur:
            cur.execute(query + sql.SQL(" RETURNING {}").format(_RETURNING), params)
            row = cur.fetchone()
            return dict(row) if row else None

    def update_one(self, isbn, set_fields=None, push_fields=None):
        check_update_fields(set_fields, push_fields)

        assignments = [sql.SQL("updated_at = CURRENT_TIMESTAMP")]
        params: List[Any] = []
        for name, value in (set_fields or {}).items():
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(name)))
            params.append(value)
        for name, value in (push_fields or {}).items():
            assignments.append(
                sql.SQL("{0} = array_append({0}, %s)").format(sql.Identifier(name))
            )
            params.append(value)
        params.append(isbn)

        with self._cursor() as cur:
            cur.execute(
                sql.SQL("UPDATE books SET {} WHERE isbn = %s RETURNING {}").format(
                    sql.SQL(", ").join(assignments), _RETURNING
                ),
                params
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def set_prices(self, pairs):
        modified = 0
        with self._cursor() as cur:
            for isbn, price in pairs:
                cur.execute("""
                    UPDATE books
                    SET price = %s, updated_at = CURRENT_TIMESTAMP
                    WHERE isbn = %s AND price IS DISTINCT FROM %s
                """, (price, isbn, price))
                modified += cur.rowcount
        return modified

    def count_documents(self):
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS total FROM books")
            return cur.fetchone()["total"]

    def total_quantity(self):
        with self._cursor() as cur:
            cur.execute("SELECT COALESCE(SUM(quantity), 0) AS units FROM books")
            return int(cur.fetchone()["units"])

    def find_page(self, skip, limit):
        with self._cursor() as cur:
            cur.execute(
                sql.SQL("SELECT {} FROM books {} OFFSET %s LIMIT %s").format(_RETURNING, _ORDER),
                (skip, limit)
            )
            return [dict(row) for row in cur.fetchall()]

    def find_by_slug(self, fragment):
        with self._cursor() as cur:
            cur.execute(
                sql.SQL("SELECT {} FROM books WHERE strpos(lower(slug), %s) > 0 {}").format(
                    _RETURNING, _ORDER
                ),
                (fragment.lower(),)
            )
            return [dict(row) for row in cur.fetchall()]

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")
