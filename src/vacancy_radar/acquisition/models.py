"""
Pydantic models for open-data acquisition configuration.

HTTP client settings (timeouts, pool limits, retries, pacing) plus the
geographic area whose sales and diagnostics are requested from the DVF
and DPE registries.
"""

import random
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class RetryConfig(BaseModel):
    """Exponential backoff: base_delay * 2**attempt plus up to jitter_factor seconds, capped at max_delay."""

    max_retries: int = Field(default=3, ge=0, le=10, description="Retries after the first attempt")
    base_delay: float = Field(default=1.0, gt=0, le=10.0, description="Delay before the first retry, in seconds")
    max_delay: float = Field(default=15.0, gt=0, le=300.0, description="Upper bound on any single delay")
    jitter_factor: float = Field(default=0.5, ge=0, le=1.0, description="Maximum random extra delay, in seconds")

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number attempt + 1 (attempt is 0-indexed)."""
        return min(self.base_delay * 2**attempt + random.uniform(0, self.jitter_factor), self.max_delay)


class RateLimitConfig(BaseModel):
    """Client-side request pacing."""

    concurrent_requests: int = Field(default=2, gt=0, le=10)
    min_request_interval: float = Field(
        default=0.5,
        ge=0,
        le=10.0,
        description="Seconds between the starts of two consecutive requests",
    )


class TimeoutConfig(BaseModel):
    """Per-phase httpx timeouts, in seconds."""

    connect: float = Field(default=10.0, gt=0, le=60.0)
    read: float = Field(default=30.0, gt=0, le=300.0)
    write: float = Field(default=10.0, gt=0, le=60.0)
    pool: float = Field(default=30.0, gt=0, le=60.0)


class ConnectionLimits(BaseModel):
    """httpx connection pool sizing."""

    max_connections: int = Field(default=10, gt=0, le=100)
    max_keepalive_connections: int = Field(default=5, gt=0, le=50)
    keepalive_expiry: float = Field(default=30.0, gt=0, le=300.0)


class BoundingBox(BaseModel):
    """WGS84 box; x is longitude, y is latitude."""

    min_x: float = Field(..., ge=-180, le=180, description="West edge")
    min_y: float = Field(..., ge=-90, le=90, description="South edge")
    max_x: float = Field(..., ge=-180, le=180, description="East edge")
    max_y: float = Field(..., ge=-90, le=90, description="North edge")

    @model_validator(mode="after")
    def check_extent(self) -> "BoundingBox":
        if self.max_x <= self.min_x:
            raise ValueError("east edge must lie east of the west edge")
        if self.max_y <= self.min_y:
            raise ValueError("north edge must lie north of the south edge")
        return self

    def to_bbox_param(self) -> str:
        """
        Convert to the bbox query format shared by both registries.

        Returns:
            String in format "west,south,east,north"
        """
        return f"{self.min_x},{self.min_y},{self.max_x},{self.max_y}"

    def to_polygon(self) -> list[tuple[float, float]]:
        """Return the four corners as (lat, lon) pairs, south-west first."""
        return [
            (self.min_y, self.min_x),
            (self.min_y, self.max_x),
            (self.max_y, self.max_x),
            (self.max_y, self.min_x),
        ]

    def contains(self, lat: float, lon: float) -> bool:
        """Check whether a point lies within the box (edges included)."""
        return self.min_y <= lat <= self.max_y and self.min_x <= lon <= self.max_x


class TargetArea(BaseModel):
    """
    Target district for vacancy analysis.

    Default values are for the Bouffay district of Nantes city centre.
    """

    name: str = Field(default="Bouffay", min_length=1)
    commune_name: str = Field(
        default="Nantes",
        min_length=1,
        description="Commune name used by the DPE full-text filter",
    )
    commune_code: str = Field(
        default="44109",
        pattern=r"^\d[0-9AB]\d{3}$",
        description="INSEE commune code used by the DVF filter",
    )
    center_latitude: float = Field(default=47.2139, ge=-90, le=90)
    center_longitude: float = Field(default=-1.5535, ge=-180, le=180)
    south: float = Field(default=47.2105, ge=-90, le=90)
    north: float = Field(default=47.2175, ge=-90, le=90)
    west: float = Field(default=-1.5595, ge=-180, le=180)
    east: float = Field(default=-1.5465, ge=-180, le=180)

    def get_bounding_box(self) -> BoundingBox:
        """
        Get the bounding box for this target area.

        Returns:
            BoundingBox instance covering the target area.
        """
        return BoundingBox(
            min_x=self.west,
            min_y=self.south,
            max_x=self.east,
            max_y=self.north,
        )

    @property
    def center(self) -> tuple[float, float]:
        return (self.center_latitude, self.center_longitude)


class APIClientConfig(BaseModel):
    """
    Complete configuration for an open-data registry client.

    Aggregates all configuration options for timeouts, rate limiting,
    retries and connection management.
    """

    base_url: str = Field(
        ...,
        min_length=1,
        description="Base URL for the registry REST API",
    )
    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)
    limits: ConnectionLimits = Field(default_factory=ConnectionLimits)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    page_size: int = Field(
        default=100,
        gt=0,
        le=10000,
        description="Number of records requested per call",
    )
    max_records: Optional[int] = Field(
        default=None,
        gt=0,
        description="Cap on records kept from a response (None for no cap)",
    )
    user_agent: str = Field(
        default="VacancyRadar/1.0",
        description="User-Agent header for requests",
    )


# Pre-configured defaults for the Cerema DVF open-data API
DVF_CONFIG = APIClientConfig(
    base_url="https://apidf-preprod.cerema.fr/dvf_opendata",
    page_size=100,
)

# Pre-configured defaults for the ADEME data-fair API
DPE_CONFIG = APIClientConfig(
    base_url="https://data.ademe.fr/data-fair/api/v1/datasets",
    page_size=200,
)
