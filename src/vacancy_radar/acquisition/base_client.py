"""
Abstract base client for open-data registry acquisition.

AsyncAPIClient owns one httpx.AsyncClient per `async with` block and
funnels every request through a single retrying path: a semaphore caps
concurrency, a minimum interval spaces consecutive calls, and failures are
mapped onto the acquisition exception hierarchy before the retry decision
is made. Concrete registries only describe their endpoint, their query and
how a decoded payload becomes records.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

import httpx

from .exceptions import (
    AcquisitionError,
    AuthenticationError,
    ConnectionError,
    InvalidResponseError,
    MaxRetriesExceededError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from .models import APIClientConfig, TargetArea

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

_TIMEOUT_KINDS = (
    (httpx.ConnectTimeout, "connect"),
    (httpx.ReadTimeout, "read"),
    (httpx.WriteTimeout, "write"),
    (httpx.PoolTimeout, "pool"),
)


def _retry_after_seconds(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is ignored
        return None


def classify_status_error(error: httpx.HTTPStatusError, url: str) -> AcquisitionError:
    """Map a non-2xx response onto the acquisition exception hierarchy."""
    response = error.response
    status = response.status_code

    if status == 429:
        return RateLimitError(
            f"Rate limit exceeded for {url}",
            retry_after=_retry_after_seconds(response),
            cause=error,
        )
    if status in (401, 403):
        return AuthenticationError(f"Access refused for {url}: {status}", status_code=status, cause=error)
    if status == 404:
        return NotFoundError(f"Resource not found: {url}", url=url, cause=error)
    if status >= 500:
        return ServerError(f"Server error {status} for {url}", status_code=status, cause=error)
    return InvalidResponseError(f"HTTP {status} error for {url}", response_text=response.text, cause=error)


def classify_transport_error(error: httpx.RequestError, url: str) -> AcquisitionError:
    """
    Map a request-level failure onto the acquisition exception hierarchy.

    Redirect loops and undecodable bodies are not network faults and are
    reported as invalid responses, which are not retried.
    """
    if isinstance(error, httpx.TimeoutException):
        kind = next((name for cls, name in _TIMEOUT_KINDS if isinstance(error, cls)), "unknown")
        return TimeoutError(f"Request to {url} timed out ({kind})", timeout_type=kind, cause=error)
    if isinstance(error, httpx.ConnectError):
        return ConnectionError(f"Failed to connect to {url}", cause=error)
    if isinstance(error, (httpx.TooManyRedirects, httpx.DecodingError)):
        return InvalidResponseError(f"Unusable response from {url}: {error}", cause=error)
    return ConnectionError(f"Request error for {url}: {error}", cause=error)


class AsyncAPIClient(ABC, Generic[RecordT]):
    """
    Abstract base class for async open-data registry clients.

    Usage:
        async with DVFClient() as client:
            records = await client.fetch_records(TargetArea())

    Attributes:
        name: Short registry label used in log lines.
        config: The APIClientConfig instance with all settings.
    """

    name = "registry"

    def __init__(
        self,
        config: APIClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client with configuration.

        Args:
            config: APIClientConfig instance with all client settings.
            transport: Optional httpx transport (mock transports in tests).
        """
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._request_count = 0
        self._last_request_time = 0.0

    async def __aenter__(self) -> "AsyncAPIClient[RecordT]":
        self._open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("%s: closed client after %d requests", self.name, self._request_count)

    @property
    def request_count(self) -> int:
        return self._request_count

    def _open(self) -> None:
        cfg = self.config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=cfg.timeout.connect,
                read=cfg.timeout.read,
                write=cfg.timeout.write,
                pool=cfg.timeout.pool,
            ),
            limits=httpx.Limits(
                max_connections=cfg.limits.max_connections,
                max_keepalive_connections=cfg.limits.max_keepalive_connections,
                keepalive_expiry=cfg.limits.keepalive_expiry,
            ),
            headers={"User-Agent": cfg.user_agent, "Accept": "application/json"},
            follow_redirects=True,
            transport=self._transport,
        )
        self._semaphore = asyncio.Semaphore(cfg.rate_limit.concurrent_requests)
        logger.info(
            "%s: opened client for %s (max %d concurrent)",
            self.name,
            cfg.base_url,
            cfg.rate_limit.concurrent_requests,
        )

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} used outside 'async with'")
        return self._client

    async def _space_requests(self) -> None:
        """Sleep so consecutive requests are at least min_request_interval apart."""
        wait = self.config.rate_limit.min_request_interval - (time.monotonic() - self._last_request_time)
        if wait > 0:
            logger.debug("%s: rate limiting for %.3f seconds", self.name, wait)
            await asyncio.sleep(wait)
        self._last_request_time = time.monotonic()

    def _backoff_delay(self, attempt: int, error: AcquisitionError) -> float:
        retry = self.config.retry
        if isinstance(error, RateLimitError) and error.retry_after:
            return min(error.retry_after, retry.max_delay)
        return retry.calculate_delay(attempt)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """
        GET with rate limiting and retries.

        Retryable failures (timeouts, connection errors, 429 and 5xx gateway
        errors) are retried up to retry.max_retries times; any other
        classified failure is raised immediately.

        Raises:
            MaxRetriesExceededError: If every attempt failed with a retryable error.
            AcquisitionError: For non-retryable failures.
        """
        client = self._require_client()
        attempts = self.config.retry.max_retries + 1
        last_error: Optional[AcquisitionError] = None

        for attempt in range(attempts):
            try:
                async with self._semaphore:  # type: ignore[union-attr]
                    await self._space_requests()
                    logger.debug("%s: GET %s (attempt %d/%d)", self.name, url, attempt + 1, attempts)
                    response = await client.get(url, **kwargs)
                    self._request_count += 1
                    response.raise_for_status()
                    return response
            except httpx.HTTPStatusError as e:
                last_error = classify_status_error(e, url)
            except httpx.RequestError as e:
                last_error = classify_transport_error(e, url)

            if not last_error.retryable:
                raise last_error

            logger.warning("%s: attempt %d failed: %s", self.name, attempt + 1, last_error)
            if attempt + 1 < attempts:
                delay = self._backoff_delay(attempt, last_error)
                logger.info("%s: retrying in %.2f seconds", self.name, delay)
                await asyncio.sleep(delay)

        raise MaxRetriesExceededError(
            f"Max retries ({self.config.retry.max_retries}) exceeded for {url}",
            attempts=attempts,
            last_error=last_error,
        )

    async def get_json(self, url: str, **kwargs: Any) -> dict[str, Any]:
        """
        GET and decode a JSON object.

        Raises:
            InvalidResponseError: If the body is not JSON or not an object.
        """
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Failed to parse JSON from {url}",
                response_text=response.text,
                cause=e,
            )

        if not isinstance(data, dict):
            raise InvalidResponseError(
                f"Expected a JSON object from {url}, got {type(data).__name__}",
                response_text=response.text,
            )
        return data

    @abstractmethod
    def get_endpoint_url(self) -> str:
        """Full URL of the registry endpoint queried by this client."""

    @abstractmethod
    def build_query_params(self, area: TargetArea) -> dict[str, Any]:
        """Query-string parameters selecting the records of one area."""

    @abstractmethod
    def parse_rows(self, payload: dict[str, Any]) -> list[RecordT]:
        """Map a decoded registry response to record models."""

    async def fetch_records(self, area: TargetArea) -> list[RecordT]:
        """
        Fetch and parse all records of the target area.

        Args:
            area: District whose commune and bounding box filter the query.

        Returns:
            Parsed records, at most config.max_records; rows that cannot be
            mapped are skipped.
        """
        url = self.get_endpoint_url()
        payload = await self.get_json(url, params=self.build_query_params(area))
        records = self.parse_rows(payload)
        if self.config.max_records is not None:
            records = records[: self.config.max_records]

        logger.info("%s: fetched %d records for %s", self.name, len(records), area.name)
        return records
