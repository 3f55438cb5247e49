"""Shared fixtures for the vacancy radar tests.

Reference date: 2025-06-01. Zones: the four built-in Bouffay IRIS zones.
Test point (47.2138, -1.5535) lies inside zone 441090101 (Bouffay).
"""

from datetime import date, timedelta

import pytest

from vacancy_radar.acquisition import (
    BOUFFAY_IRIS_ZONES,
    APIClientConfig,
    CensusZone,
    DiagnosticRecord,
    RateLimitConfig,
    RetryConfig,
    TransactionRecord,
    parse_census_zones,
)

REFERENCE_DATE = date(2025, 6, 1)
BOUFFAY_POINT = (47.2138, -1.5535)


@pytest.fixture
def now() -> date:
    return REFERENCE_DATE


@pytest.fixture
def bouffay_zones() -> list[CensusZone]:
    return parse_census_zones(BOUFFAY_IRIS_ZONES)


@pytest.fixture
def make_transaction():
    """Factory for sales at the test point, aged in months before REFERENCE_DATE."""

    def _make(
        months_ago: int = 30,
        lat: float = BOUFFAY_POINT[0],
        lon: float = BOUFFAY_POINT[1],
        price_total: float | None = None,
        surface_area: float | None = None,
    ) -> TransactionRecord:
        return TransactionRecord(
            latitude=lat,
            longitude=lon,
            transaction_date=REFERENCE_DATE - timedelta(days=30 * months_ago),
            price_total=price_total,
            surface_area=surface_area,
            months_ago=months_ago,
        )

    return _make


@pytest.fixture
def make_diagnostic():
    """Factory for diagnostics at the test point."""

    def _make(
        energy_class: str = "D",
        year_built: int | None = 1970,
        lat: float = BOUFFAY_POINT[0],
        lon: float = BOUFFAY_POINT[1],
    ) -> DiagnosticRecord:
        return DiagnosticRecord(
            latitude=lat,
            longitude=lon,
            energy_class=energy_class,
            year_built=year_built,
        )

    return _make


@pytest.fixture
def make_square_zone():
    """Factory for axis-aligned square census zones."""
    return _square_zone


def _square_zone(
    zone_id: str,
    south: float,
    west: float,
    size: float,
    total: int = 1000,
    secondary: int = 50,
    vacant: int = 100,
) -> CensusZone:
    return CensusZone(
        id=zone_id,
        name=f"Zone {zone_id}",
        polygon=(
            (south, west),
            (south, west + size),
            (south + size, west + size),
            (south + size, west),
        ),
        total_dwellings=total,
        primary_residences=total - secondary - vacant,
        secondary_residences=secondary,
        vacant_dwellings=vacant,
        census_year=2021,
    )


@pytest.fixture
def fast_retry_config() -> APIClientConfig:
    """Client config with a single quick retry and no rate limiting."""
    return APIClientConfig(
        base_url="https://registry.test/api",
        retry=RetryConfig(max_retries=1, base_delay=0.01, max_delay=0.01, jitter_factor=0),
        rate_limit=RateLimitConfig(min_request_interval=0),
    )
