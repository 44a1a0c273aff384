# src/f1_jolpica/ingestion/rate_limiter.py
"""
Client-side throttling for requests to the Jolpica API.

The API allows a short burst of requests per second and a sustained quota per
hour. Both are expressed as ``pyrate_limiter`` request rates on one shared
``Limiter``: the same engine ``requests-ratelimiter`` mounts on a session
through its ``LimiterAdapter`` (see ``http_client.create_session``).

The session throttles requests sent through ``HttpTransport``. ``acquire()``
throttles everything else, e.g. injected transports, against the same buckets.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

from pyrate_limiter import BucketFullException, Duration, Limiter, RequestRate

from ..config import BASE_URL, RATE_LIMIT_BURST, RATE_LIMIT_QUOTA, RATE_LIMIT_WINDOW

logger = logging.getLogger(__name__)

# requests-ratelimiter names its buckets after the request host
DEFAULT_BUCKET = urlparse(BASE_URL).netloc or "jolpica"

# Lower bound on a single wait, so a bucket reporting 0s remaining still advances the clock
MIN_WAIT = 0.01


class RateLimiter:
    """Blocking limiter over a thread-safe ``pyrate_limiter.Limiter``."""

    def __init__(
        self,
        *rates: RequestRate,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            rates: Request rates, ordered by increasing interval
            clock: Monotonic clock, injectable for tests
            sleep: Blocking sleep, injectable for tests
        """
        if not rates:
            raise ValueError("A rate limiter needs at least one request rate")

        self.rates = rates
        self.limiter = Limiter(*rates, time_function=clock)
        self._sleep = sleep

    @classmethod
    def per_window(
        cls,
        quota: int,
        window_seconds: float,
        burst: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "RateLimiter":
        """Limit to ``quota`` requests per ``window_seconds`` and ``burst`` per second."""
        rates = [RequestRate(quota, int(window_seconds))]
        if burst is not None:
            rates.insert(0, RequestRate(burst, Duration.SECOND))
        return cls(*rates, clock=clock, sleep=sleep)

    @property
    def burst(self) -> int:
        """Requests served back to back before the first wait."""
        return self.rates[0].limit

    @property
    def interval(self) -> float:
        """Seconds between requests under sustained load."""
        return max(rate.interval / rate.limit for rate in self.rates)

    def try_acquire(self, bucket: str = DEFAULT_BUCKET) -> float:
        """
        Take a slot without blocking.

        Returns:
            0.0 when the slot was taken, otherwise the seconds to wait before retrying
        """
        try:
            self.limiter.try_acquire(bucket)
        except BucketFullException as e:
            return max(float(e.meta_info["remaining_time"]), MIN_WAIT)
        return 0.0

    def acquire(self, bucket: str = DEFAULT_BUCKET) -> float:
        """
        Block until a slot is available and take it. Never fails.

        Returns:
            Seconds spent waiting (0.0 when a slot was immediately available)
        """
        waited = 0.0
        while (wait := self.try_acquire(bucket)) > 0:
            logger.debug(f"⏳ Rate limit reached. Waiting for {wait:.2f} seconds.")
            self._sleep(wait)
            waited += wait
        return waited


class NoopRateLimiter:
    """A limiter that never waits, for tests and for callers throttling externally."""

    limiter = None

    def acquire(self, bucket: str = DEFAULT_BUCKET) -> float:
        return 0.0


def jolpica_rate_limiter() -> RateLimiter:
    """A limiter matching the public Jolpica API quota from configuration."""
    return RateLimiter.per_window(
        quota=RATE_LIMIT_QUOTA, window_seconds=RATE_LIMIT_WINDOW, burst=RATE_LIMIT_BURST
    )


class RateLimiterMode(Enum):
    NONE = "none"
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class RateLimiterOption:
    """
    Who owns the rate limiter used by a client.

    - ``none()``: no limiting at all, plain session
    - ``internal()``: the client builds and owns its own limiter
    - ``external(limiter)``: several clients share one limiter and one quota
    """

    mode: RateLimiterMode
    limiter: RateLimiter | None = None

    @classmethod
    def none(cls) -> "RateLimiterOption":
        return cls(RateLimiterMode.NONE)

    @classmethod
    def internal(cls) -> "RateLimiterOption":
        return cls(RateLimiterMode.INTERNAL)

    @classmethod
    def external(cls, limiter: RateLimiter) -> "RateLimiterOption":
        return cls(RateLimiterMode.EXTERNAL, limiter)

    def resolve(self) -> RateLimiter | NoopRateLimiter:
        """Return the limiter a client should throttle with."""
        if self.mode is RateLimiterMode.NONE:
            return NoopRateLimiter()
        if self.mode is RateLimiterMode.EXTERNAL:
            if self.limiter is None:
                raise ValueError("An external rate limiter option requires a limiter")
            return self.limiter
        return jolpica_rate_limiter()
