# src/f1_jolpica/ingestion/http_client.py

import logging

import requests
from pyrate_limiter import Limiter
from requests import RequestException
from requests.adapters import HTTPAdapter
from requests_ratelimiter import LimiterAdapter
from urllib3.util.retry import Retry

from ..config import DEFAULT_HEADERS, HTTP_STATUS_RETRIES, REQUEST_TIMEOUT
from ..exceptions import TransportError

logger = logging.getLogger(__name__)


def create_session(limiter: Limiter | None = None) -> requests.Session:
    """
    Creates a Session with:
    1. Default headers for the Jolpica API
    2. Client-side throttling via requests-ratelimiter, when a limiter is given
    3. Adapter-level retries honouring Retry-After on 429/5xx responses

    Sessions built from the same pyrate Limiter share one quota, since the
    adapter names its buckets after the request host.
    """
    session = requests.Session()

    # Retry Strategy (Handles 429s gracefully)
    # This logic runs INSIDE session.request(). If we get a 429, it checks the
    # 'Retry-After' header and sleeps automatically before returning control.
    retry_strategy = Retry(
        total=HTTP_STATUS_RETRIES,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET", "OPTIONS"],  # Only retry safe methods
    )

    adapter: HTTPAdapter
    if limiter is None:
        adapter = HTTPAdapter(max_retries=retry_strategy)
    else:
        adapter = LimiterAdapter(limiter=limiter, max_retries=retry_strategy)

    # Mount the adapter to both HTTP and HTTPS
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.headers.update(DEFAULT_HEADERS)
    return session


class HttpTransport:
    """Blocking HTTP transport that reports every network/HTTP failure as a TransportError."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
        limiter: Limiter | None = None,
    ) -> None:
        self.session = session or create_session(limiter)
        self.timeout = timeout

    def fetch(self, method: str, url: str) -> tuple[int, str]:
        """
        Perform one request and return its status code and body.

        Args:
            method: HTTP method, e.g. "GET"
            url: Fully built request URL, including any query string

        Returns:
            Tuple of (status code, response body text)

        Raises:
            TransportError: On connection failures, timeouts or non-2xx statuses
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout)
            response.raise_for_status()
        except RequestException as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"❌ {method} {url} failed: {e}")
            raise TransportError(f"{method} {url} failed: {e}", status=status) from e

        return response.status_code, response.text
