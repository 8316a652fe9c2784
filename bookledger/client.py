"""HTTP client for the Google Books catalog."""
import time
import random
import requests
from typing import Optional, Dict, Any
import logging

from bookledger.errors import TransportError
from bookledger.models import BookMetadata
from bookledger.parse import parse_volume

logger = logging.getLogger(__name__)


class GoogleBooksClient:
    """Catalog lookup by ISBN with timeouts and optional backoff."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 1,
        base_backoff: float = 1.0
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
            max_retries: Total attempts per lookup (1 means no retry)
            base_backoff: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def lookup(self, isbn: str) -> Optional[BookMetadata]:
        """
        Fetch catalog metadata for an ISBN.

        Args:
            isbn: Normalized ISBN

        Returns:
            BookMetadata, or None when the catalog has no match or
            refuses the request

        Raises:
            TransportError: On timeouts, connection failures, server
                errors, rate limiting or an unreadable body
        """
        params = {"q": f"isbn:{isbn}"}

        if self.api_key:
            params["key"] = self.api_key

        response_json = self._make_request_with_retry(self.BASE_URL, params)
        if response_json is None:
            logger.warning(f"Catalog refused lookup for ISBN {isbn}")
            return None

        try:
            metadata = parse_volume(isbn, response_json)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Malformed catalog response for ISBN {isbn}: {e}")
            raise TransportError(f"Malformed catalog response: {e}") from e

        if metadata is None:
            logger.info(f"No catalog match for ISBN {isbn}")
        return metadata

    def _make_request_with_retry(
        self,
        url: str,
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request, retrying transient failures if configured.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Response JSON, or None for a non-retryable client error

        Raises:
            TransportError: When the last attempt fails transiently
        """
        last_error = "no attempt made"

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                # Handle different status codes
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise TransportError(f"Unreadable catalog response: {e}") from e

                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")
                    last_error = "rate limited (429)"

                elif response.status_code >= 500:
                    # Server error - retryable
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")
                    last_error = f"server error ({response.status_code})"

                elif response.status_code >= 400:
                    # Client error - the catalog will not answer this query
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    return None

                else:
                    last_error = f"unexpected status ({response.status_code})"

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                last_error = "timeout"

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                last_error = f"connection error: {e}"

            if attempt < self.max_retries - 1:
                self._backoff(attempt)

        logger.error(f"All {self.max_retries} attempts failed: {last_error}")
        raise TransportError(f"Catalog lookup failed: {last_error}")

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)

        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
