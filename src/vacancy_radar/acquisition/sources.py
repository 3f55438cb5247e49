"""
Record sources: the contract between acquisition and the scoring engine.

A source always resolves to a list of well-typed records. Remote sources
recover from acquisition failures by substituting synthetic records, so
registry outages never surface as engine faults. The engine receives
plain record lists and cannot tell real data from fallback data.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

import httpx

from .dpe_client import DPEClient
from .dvf_client import DVFClient
from .exceptions import AcquisitionError
from .models import APIClientConfig, TargetArea
from .records import DiagnosticRecord, TransactionRecord
from .sample_data import generate_sample_diagnostics, generate_sample_transactions

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class RecordSource(ABC, Generic[RecordT]):
    """A pluggable provider of one immutable record snapshot."""

    name: str = "records"

    @abstractmethod
    async def load(self) -> list[RecordT]:
        """Return the current records; never raises AcquisitionError."""


class StaticRecordSource(RecordSource[RecordT]):
    """Serves a fixed collection (tests, cached snapshots)."""

    def __init__(self, records: Sequence[RecordT], name: str = "static") -> None:
        self._records = list(records)
        self.name = name

    async def load(self) -> list[RecordT]:
        return list(self._records)


class RemoteRecordSource(RecordSource[RecordT]):
    """
    Fetches records remotely and falls back to generated ones on failure.

    Usage:
        async def fetch():
            async with DVFClient() as client:
                return await client.fetch_records(area)

        source = RemoteRecordSource(fetch, lambda: generate_sample_transactions(), name="DVF")
        records = await source.load()

    Attributes:
        last_error: Message of the last acquisition failure, None after a success.
        used_fallback: Whether the last load returned fallback records.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[RecordT]]],
        fallback: Callable[[], list[RecordT]],
        name: str = "remote",
    ) -> None:
        self._fetch = fetch
        self._fallback = fallback
        self.name = name
        self.last_error: Optional[str] = None
        self.used_fallback = False

    async def load(self) -> list[RecordT]:
        try:
            records = await self._fetch()
        except AcquisitionError as e:
            self.last_error = str(e)
            self.used_fallback = True
            records = self._fallback()
            logger.warning(
                "%s acquisition failed (%s); using %d fallback records",
                self.name,
                e,
                len(records),
            )
            return records

        self.last_error = None
        self.used_fallback = False
        logger.info("%s: loaded %d records", self.name, len(records))
        return records


async def load_all(*sources: RecordSource) -> tuple[list, ...]:
    """Load several sources concurrently, preserving argument order."""
    results = await asyncio.gather(*(source.load() for source in sources))
    return tuple(results)


def dvf_source(
    area: TargetArea,
    now: Optional[date] = None,
    seed: Optional[int] = None,
    config: Optional[APIClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RemoteRecordSource[TransactionRecord]:
    """DVF sales for the area, with synthetic sales as fallback."""

    async def fetch() -> list[TransactionRecord]:
        async with DVFClient(config, transport=transport) as client:
            return await client.fetch_records(area)

    return RemoteRecordSource(
        fetch,
        lambda: generate_sample_transactions(now=now, seed=seed),
        name="DVF",
    )


def dpe_source(
    area: TargetArea,
    seed: Optional[int] = None,
    config: Optional[APIClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RemoteRecordSource[DiagnosticRecord]:
    """DPE diagnostics for the area, with synthetic diagnostics as fallback."""

    async def fetch() -> list[DiagnosticRecord]:
        async with DPEClient(config, transport=transport) as client:
            return await client.fetch_records(area)

    return RemoteRecordSource(
        fetch,
        lambda: generate_sample_diagnostics(area, seed=seed),
        name="DPE",
    )
