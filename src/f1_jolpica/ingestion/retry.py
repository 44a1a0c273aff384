# src/f1_jolpica/ingestion/retry.py
"""
Retry wrapper for single fetch attempts.

Only TransportError is retried. Decode, extraction and pagination errors are
deterministic for a given response, so they propagate on first occurrence.
"""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..config import HTTP_RETRIES, RETRY_WAIT
from ..exceptions import RetriesExhaustedError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_transport_error(
    operation: Callable[[], T],
    max_attempts: int = HTTP_RETRIES + 1,
    sleep_between: float = RETRY_WAIT,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``operation`` until it succeeds, retrying only on TransportError.

    Args:
        operation: Zero-argument callable performing one attempt
        max_attempts: Total number of attempts, including the first
        sleep_between: Seconds to sleep between attempts
        sleep: Blocking sleep, injectable for tests

    Returns:
        The value returned by the first successful attempt

    Raises:
        RetriesExhaustedError: If every attempt failed with a TransportError
        Exception: Any non-transport error raised by ``operation``, unchanged
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(sleep_between),
        retry=retry_if_exception_type(TransportError),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )

    try:
        return retrying(operation)
    except RetryError as e:
        attempt = e.last_attempt
        last_error = attempt.exception()
        logger.error(f"❌ Giving up after {attempt.attempt_number} attempt(s): {last_error}")
        raise RetriesExhaustedError(attempt.attempt_number, last_error) from last_error
