"""
Custom exceptions for open-data record acquisition.

Every failure talking to the DVF or DPE registries surfaces as an
AcquisitionError subclass. Each class states whether a retry can help
(`retryable`); the base client consults it before backing off. None of
these reach the scoring engine: record sources turn them into synthetic
fallback data.
"""

from typing import Optional

# Gateway-style statuses that usually clear up on their own
RETRYABLE_SERVER_STATUSES = frozenset({500, 502, 503, 504})


class AcquisitionError(Exception):
    """Base exception for all acquisition-related errors."""

    retryable = False

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        """
        Args:
            message: Human-readable error description.
            cause: The underlying exception, if any.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class ConnectionError(AcquisitionError):
    """The registry host could not be reached."""

    retryable = True


class TimeoutError(AcquisitionError):
    """A request phase (connect, read, write or pool) timed out."""

    retryable = True

    def __init__(self, message: str, timeout_type: str = "unknown", cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.timeout_type = timeout_type


class RateLimitError(AcquisitionError):
    """HTTP 429; retry_after carries the server's Retry-After in seconds."""

    retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.retry_after = retry_after


class ServerError(AcquisitionError):
    """HTTP 5xx from the registry."""

    def __init__(self, message: str, status_code: int, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code in RETRYABLE_SERVER_STATUSES


class AuthenticationError(AcquisitionError):
    """HTTP 401/403. The open-data endpoints need no key, so this means a blocked client."""

    def __init__(self, message: str, status_code: int, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.status_code = status_code


class NotFoundError(AcquisitionError):
    """HTTP 404, typically a renamed dataset or endpoint."""

    def __init__(self, message: str, url: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.url = url


class InvalidResponseError(AcquisitionError):
    """
    A response (or reference file) that cannot be turned into records.

    Raised for other 4xx statuses, non-JSON bodies, JSON that is not an
    object, and malformed census zone entries. response_text keeps the
    first 500 characters of the offending body for the logs.
    """

    def __init__(
        self,
        message: str,
        response_text: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        self.response_text = response_text[:500] if response_text else None


class MaxRetriesExceededError(AcquisitionError):
    """All attempts failed with retryable errors; last_error is the final one."""

    def __init__(self, message: str, attempts: int, last_error: Optional[Exception] = None) -> None:
        super().__init__(message, last_error)
        self.attempts = attempts
        self.last_error = last_error
