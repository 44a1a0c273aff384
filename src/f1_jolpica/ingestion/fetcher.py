# src/f1_jolpica/ingestion/fetcher.py
"""
Page fetcher: one rate-limited, retried, decoded request per call.

Every attempt is throttled before it touches the network, so retries count
against the quota the same way as first attempts. The default HttpTransport
throttles inside its session; injected transports are throttled here.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlparse

from ..config import BASE_URL, HTTP_RETRIES, RETRY_WAIT
from ..exceptions import InconsistentResponseError, TransportError
from ..models.response import Response, decode
from .http_client import HttpTransport
from .resource import Page, Resource
from .retry import retry_on_transport_error

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def fetch(self, method: str, url: str) -> tuple[int, str]: ...


class Limiter(Protocol):
    # The pyrate Limiter behind it, or None when nothing throttles
    limiter: Any

    def acquire(self, bucket: str = ...) -> float: ...


@dataclass
class FetchStats:
    """Thread-safe accumulator for request statistics.

    All mutation methods acquire a lock so that clients sharing a fetcher
    across threads can safely update the counters.
    """

    requests_made: int = field(default=0)
    transport_errors: int = field(default=0)
    pages_decoded: int = field(default=0)
    seconds_throttled: float = field(default=0.0)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, field_name: str, amount: int | float = 1) -> None:
        """Atomically increment a named counter."""
        with self._lock:
            setattr(self, field_name, getattr(self, field_name) + amount)

    def reset(self) -> None:
        """Reset all counters to zero."""
        with self._lock:
            self.requests_made = 0
            self.transport_errors = 0
            self.pages_decoded = 0
            self.seconds_throttled = 0.0

    def to_dict(self) -> dict[str, int | float]:
        """Return a snapshot dict for use in summaries."""
        with self._lock:
            return {
                "requests_made": self.requests_made,
                "transport_errors": self.transport_errors,
                "pages_decoded": self.pages_decoded,
                "seconds_throttled": round(self.seconds_throttled, 3),
            }


class PageFetcher:
    """Fetches and decodes single pages of a resource."""

    def __init__(
        self,
        rate_limiter: Limiter,
        transport: Transport | None = None,
        base_url: str = BASE_URL,
        max_attempts: int = HTTP_RETRIES + 1,
        retry_wait: float = RETRY_WAIT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            rate_limiter: Limiter throttling every attempt
            transport: HTTP transport; defaults to a requests-backed HttpTransport
                throttled by a LimiterAdapter over ``rate_limiter.limiter``
            base_url: API base URL
            max_attempts: Attempts per page, including the first
            retry_wait: Seconds to sleep between attempts
            sleep: Blocking sleep used between attempts, injectable for tests
        """
        self.rate_limiter = rate_limiter
        self._throttled_by_transport = transport is None
        self.transport = transport or HttpTransport(limiter=rate_limiter.limiter)
        self.base_url = base_url
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait
        self.sleep = sleep
        self.stats = FetchStats()

    def _attempt(self, url: str) -> str:
        if not self._throttled_by_transport:
            waited = self.rate_limiter.acquire(urlparse(url).netloc)
            if waited:
                self.stats.increment("seconds_throttled", waited)

        self.stats.increment("requests_made")
        try:
            _status, body = self.transport.fetch("GET", url)
        except TransportError:
            self.stats.increment("transport_errors")
            raise
        return body

    def fetch(self, url: str) -> Response:
        """
        Fetch and decode one page by URL.

        Raises:
            RetriesExhaustedError: If every attempt failed with a TransportError
            DecodeError: If the body cannot be decoded (not retried)
        """
        logger.debug(f"📡 GET {url}")
        body = retry_on_transport_error(
            lambda: self._attempt(url),
            max_attempts=self.max_attempts,
            sleep_between=self.retry_wait,
            sleep=self.sleep,
        )
        response = decode(body)
        self.stats.increment("pages_decoded")
        return response

    def fetch_page(self, resource: Resource, page: Page) -> Response:
        """
        Fetch and decode one page of a resource.

        Raises:
            InconsistentResponseError: If the page holds a different table than the resource serves
        """
        response = self.fetch(resource.to_url(self.base_url, page))
        if response.table.tag.value != resource.kind.table:
            raise InconsistentResponseError(
                f"Expected '{resource.kind.table}' for '{resource.kind.value}', "
                f"got '{response.table.tag.value}'"
            )
        return response
