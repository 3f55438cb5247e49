"""
Record models shared by the acquisition layer and the scoring engine.

Three heterogeneous datasets feed the engine:

- TransactionRecord: a DVF property sale (date, price, built surface)
- DiagnosticRecord: a DPE energy-performance diagnostic (class A..G)
- CensusZone: an INSEE IRIS zone with its polygon and housing-stock counts

All models are frozen; the engine never mutates its inputs.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENERGY_CLASSES = ("A", "B", "C", "D", "E", "F", "G")
FAILING_CLASSES = frozenset({"F", "G"})


class TransactionRecord(BaseModel):
    """A recorded real-estate sale."""

    model_config = ConfigDict(frozen=True)

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    transaction_date: date
    price_total: Optional[float] = Field(default=None, ge=0)
    surface_area: Optional[float] = Field(default=None, ge=0)
    nature_of_good: Optional[str] = None
    months_ago: Optional[int] = Field(
        default=None,
        ge=0,
        description="Precomputed age of the sale; takes precedence over the date",
    )
    street: Optional[str] = None
    local_count: Optional[int] = Field(default=None, ge=0)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def price_per_area(self) -> Optional[float]:
        """Price per square metre when both price and surface are known."""
        if self.price_total and self.surface_area:
            return self.price_total / self.surface_area
        return None


class DiagnosticRecord(BaseModel):
    """An energy-performance diagnostic for one dwelling."""

    model_config = ConfigDict(frozen=True)

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    energy_class: str
    ghg_class: Optional[str] = None
    year_built: Optional[int] = None
    surface_area: Optional[float] = Field(default=None, ge=0)
    established_date: Optional[date] = None
    building_type: Optional[str] = None
    diagnostic_id: Optional[str] = None

    @field_validator("energy_class", mode="before")
    @classmethod
    def validate_energy_class(cls, v: str) -> str:
        """Normalise the class letter and reject anything outside A..G."""
        letter = str(v).strip().upper()
        if letter not in ENERGY_CLASSES:
            raise ValueError(f"energy class must be one of A..G, got {v!r}")
        return letter

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_failing(self) -> bool:
        return self.energy_class in FAILING_CLASSES


class CensusZone(BaseModel):
    """
    A census statistical zone (IRIS) with a single census-year snapshot.

    The polygon is an ordered sequence of (lat, lon) vertices, implicitly
    closed. primary + secondary + vacant is expected to roughly equal
    total_dwellings but is not enforced.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    polygon: tuple[tuple[float, float], ...]
    total_dwellings: int = Field(..., ge=0)
    primary_residences: int = Field(default=0, ge=0)
    secondary_residences: int = Field(default=0, ge=0)
    vacant_dwellings: int = Field(default=0, ge=0)
    census_year: int

    @property
    def vacancy_rate(self) -> float:
        if self.total_dwellings <= 0:
            return 0.0
        return self.vacant_dwellings / self.total_dwellings

    @property
    def secondary_rate(self) -> float:
        if self.total_dwellings <= 0:
            return 0.0
        return self.secondary_residences / self.total_dwellings

    @property
    def primary_rate(self) -> float:
        if self.total_dwellings <= 0:
            return 0.0
        return self.primary_residences / self.total_dwellings
