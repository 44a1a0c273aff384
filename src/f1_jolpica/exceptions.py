# src/f1_jolpica/exceptions.py
"""
Custom exception hierarchy for the F1 Jolpica client.

Using a typed hierarchy lets call sites distinguish between errors that are
transient and may be retried (TransportError) vs. errors caused by the data
(NotFoundError, TooManyError) vs. errors caused by the caller or by an
inconsistent upstream service (WrongVariantError, InconsistentResponseError).
"""


class F1JolpicaError(Exception):
    """Base class for all client-specific errors."""


class ConfigurationError(F1JolpicaError):
    """Raised when the runtime configuration fails validation."""


# --- Transport ---


class TransportError(F1JolpicaError):
    """
    Raised for network or HTTP-layer failures.

    This is the only error kind that the retry policy will retry.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RetriesExhaustedError(F1JolpicaError):
    """Raised when every attempt of a retried operation failed with a TransportError."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"Gave up after {attempts} attempt(s), last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


# --- Decoding ---


class DecodeError(F1JolpicaError):
    """Raised when a response body cannot be decoded into a Response."""


class UnknownVariantError(DecodeError):
    """Raised when a table or payload tag is not one of the known variants."""

    def __init__(self, kind: str, tag: str) -> None:
        super().__init__(f"Unknown {kind} variant: '{tag}'")
        self.kind = kind
        self.tag = tag


class PayloadDecodeError(DecodeError):
    """
    Raised when a tagged race payload is present but its contents fail to parse.

    The tag is carried so that a malformed payload never looks like an
    untagged schedule.
    """

    def __init__(self, tag: str, cause: Exception) -> None:
        super().__init__(f"Failed to decode '{tag}' payload: {cause}")
        self.tag = tag
        self.cause = cause


class TimeParseError(DecodeError, ValueError):
    """
    Raised when a time-of-day, duration, delta or race time literal is invalid.

    Also a ValueError so that pydantic validators surface it as a validation failure.
    """


# --- Extraction ---


class ExtractionError(F1JolpicaError):
    """Base class for errors raised while extracting records from a Response."""


class WrongVariantError(ExtractionError):
    """
    Raised when the requested record type does not match the table/payload variant.

    This is a caller bug (wrong accessor for the request), not a data problem.
    """

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected '{expected}' variant, found '{actual}'")
        self.expected = expected
        self.actual = actual


class NotFoundError(ExtractionError):
    """Raised when exactly one record was expected but none were returned."""


class TooManyError(ExtractionError):
    """Raised when exactly one record was expected but several were returned."""

    def __init__(self, count: int) -> None:
        super().__init__(f"Expected exactly one element, found {count}")
        self.count = count


class UnexpectedDataError(ExtractionError):
    """Raised when records have the right shape but contradict the request (e.g. wrong driver)."""


# --- Pagination ---


class MultiPageError(F1JolpicaError):
    """Raised when a single page was required but the response spans several pages."""


class ExceededMaxPageCountError(MultiPageError):
    """Raised before fetching when a response would need more pages than allowed."""

    def __init__(self, pages: int, max_pages: int) -> None:
        super().__init__(f"Response needs {pages} pages, exceeding the maximum of {max_pages}")
        self.pages = pages
        self.max_pages = max_pages


class InconsistentResponseError(F1JolpicaError):
    """
    Raised when pages of the same query disagree on metadata, table kind or offsets.

    This means the upstream service changed shape mid-pagination. It must halt
    the aggregation rather than return a partial merge.
    """
