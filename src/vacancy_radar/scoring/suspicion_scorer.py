"""
Vacancy suspicion scoring engine.

This module fuses property sales, energy diagnostics and census zones
into a spatial grid and scores every cell for the likelihood that its
housing is vacant or withheld from the market. Per cell:

1. Sales and diagnostics are aggregated into grid accumulators
2. The enclosing census zone is looked up once
3. The seven signal calculators run independently
4. Sub-scores are summed, rounded and capped at 100

Grid and threshold settings are configurable via config/suspicion_scoring.yaml.
Each call is a self-contained pass over immutable inputs: nothing is
kept between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence

import geopandas as gpd
import numpy as np
import pandas as pd
import yaml
from pydantic import BaseModel, Field, field_validator
from shapely.geometry import Point

from vacancy_radar.acquisition import CensusZone, DiagnosticRecord, TransactionRecord
from vacancy_radar.processing.grid import (
    DEFAULT_CELL_SIZE,
    DEFAULT_FALLBACK_PRICE,
    DEFAULT_OLD_BUILDING_YEAR,
    DEFAULT_RECENCY_MONTHS,
    CellKey,
    GridCell,
    aggregate,
    global_average_price,
)
from vacancy_radar.processing.zone_index import OVERLAP_POLICIES, CensusZoneIndex

from .signals import (
    SIGNAL_CAPS,
    SignalVector,
    aging_decay_signal,
    combine_signals,
    excess_secondary_signal,
    excess_vacancy_signal,
    failing_ratio_signal,
    invisibility_signal,
    price_anomaly_signal,
    stagnation_signal,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config/suspicion_scoring.yaml")

DISPLAY_THRESHOLD = 15
PROBABLE_THRESHOLD = 30


class ScoringSettings(BaseModel):
    """Validated scoring settings."""

    cell_size: float = Field(default=DEFAULT_CELL_SIZE, gt=0, le=1.0)
    recency_months: int = Field(default=DEFAULT_RECENCY_MONTHS, ge=0)
    old_building_year: int = Field(default=DEFAULT_OLD_BUILDING_YEAR)
    fallback_price_per_sqm: float = Field(default=DEFAULT_FALLBACK_PRICE, gt=0)
    display_threshold: int = Field(default=DISPLAY_THRESHOLD, ge=0, le=100)
    probable_threshold: int = Field(default=PROBABLE_THRESHOLD, ge=0, le=100)
    zone_overlap_policy: str = Field(default="first_match")

    @field_validator("zone_overlap_policy")
    @classmethod
    def validate_overlap_policy(cls, v: str) -> str:
        if v not in OVERLAP_POLICIES:
            raise ValueError(f"zone_overlap_policy must be one of {OVERLAP_POLICIES}")
        return v

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ScoringSettings":
        """Flatten the sectioned YAML layout into settings."""
        grid = config.get("grid", {})
        transactions = config.get("transactions", {})
        diagnostics = config.get("diagnostics", {})
        zones = config.get("zones", {})
        thresholds = config.get("thresholds", {})

        values = {
            "cell_size": grid.get("cell_size"),
            "recency_months": transactions.get("recency_months"),
            "fallback_price_per_sqm": transactions.get("fallback_price_per_sqm"),
            "old_building_year": diagnostics.get("old_building_year"),
            "zone_overlap_policy": zones.get("overlap_policy"),
            "display_threshold": thresholds.get("display"),
            "probable_threshold": thresholds.get("probable"),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


@dataclass
class ScoredCell:
    """A grid cell with its enclosing zone and signal breakdown."""

    cell: GridCell
    zone_id: Optional[str]
    zone_name: Optional[str]
    signals: SignalVector

    @property
    def key(self) -> CellKey:
        return self.cell.key

    @property
    def score(self) -> int:
        return self.signals.score

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for DataFrame integration."""
        cell = self.cell
        return {
            "cell_lat_index": cell.key[0],
            "cell_lon_index": cell.key[1],
            "latitude": cell.latitude,
            "longitude": cell.longitude,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "old_transactions": cell.old_transactions,
            "recent_transactions": cell.recent_transactions,
            "diagnostic_total": cell.diagnostic_total,
            "failing_diagnostics": cell.failing_diagnostics,
            "old_buildings": cell.old_buildings,
            "old_failing_buildings": cell.old_failing_buildings,
            "average_price_per_sqm": cell.average_price_per_area,
            **{f"signal_{name}": value for name, value in self.signals.to_dict().items() if name != "score"},
            "score": self.score,
        }


def score_cell(
    cell: GridCell,
    zone_index: CensusZoneIndex,
    average_price: float,
) -> ScoredCell:
    """
    Run all seven signal calculators on one cell.

    Pure with respect to its inputs: cells may be scored in any order or
    in parallel.
    """
    zone = zone_index.zone_containing(cell.latitude, cell.longitude)
    signals = combine_signals(
        stagnation=stagnation_signal(cell),
        failing_ratio=failing_ratio_signal(cell),
        invisibility=invisibility_signal(cell),
        excess_vacancy=excess_vacancy_signal(zone, zone_index.average_vacancy_rate),
        excess_secondary=excess_secondary_signal(zone, zone_index.average_secondary_rate),
        aging_decay=aging_decay_signal(cell),
        price_anomaly=price_anomaly_signal(cell, average_price),
    )
    return ScoredCell(
        cell=cell,
        zone_id=zone.id if zone else None,
        zone_name=zone.name if zone else None,
        signals=signals,
    )


class SuspicionScorer:
    """
    Grid-based vacancy suspicion scoring engine.

    Usage:
        scorer = SuspicionScorer()

        # Every cell with its signal breakdown
        scored = scorer.score_cells(transactions, diagnostics, zones)

        # Only cells above the display threshold
        suspicious = scorer.compute_suspicion_zones(transactions, diagnostics, zones)

    Attributes:
        config: Raw scoring configuration loaded from YAML.
        settings: Validated ScoringSettings.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        project_root: Optional[Path] = None,
        settings: Optional[ScoringSettings] = None,
    ) -> None:
        """
        Initialize the suspicion scorer.

        Args:
            config_path: Path to suspicion_scoring.yaml. Auto-detected if not provided.
            project_root: Project root directory for config lookup.
            settings: Explicit settings; skips the YAML lookup entirely.
        """
        if settings is not None:
            self.config_path = None
            self.config: dict[str, Any] = {}
            self.settings = settings
        else:
            if config_path is None:
                if project_root is None:
                    project_root = Path(__file__).parent.parent.parent.parent
                config_path = project_root / DEFAULT_CONFIG_FILE
            self.config_path = config_path
            self.config = self._load_config()
            self.settings = ScoringSettings.from_config(self.config)

        logger.info("Initialized SuspicionScorer")
        logger.info("  Config: %s", self.config_path or "explicit settings")
        logger.info(
            "  Cell size: %s, display > %d, probable > %d",
            self.settings.cell_size,
            self.settings.display_threshold,
            self.settings.probable_threshold,
        )

    def _load_config(self) -> dict[str, Any]:
        """Load scoring configuration from YAML file."""
        if not self.config_path.exists():
            logger.warning("Config not found at %s, using defaults", self.config_path)
            return self._get_default_config()

        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        logger.info("Loaded scoring config from %s", self.config_path)
        return config

    def _get_default_config(self) -> dict[str, Any]:
        """Return default configuration if YAML not found."""
        return {
            "grid": {"cell_size": DEFAULT_CELL_SIZE},
            "transactions": {
                "recency_months": DEFAULT_RECENCY_MONTHS,
                "fallback_price_per_sqm": DEFAULT_FALLBACK_PRICE,
            },
            "diagnostics": {"old_building_year": DEFAULT_OLD_BUILDING_YEAR},
            "zones": {"overlap_policy": "first_match"},
            "thresholds": {
                "display": DISPLAY_THRESHOLD,
                "probable": PROBABLE_THRESHOLD,
            },
        }

    def score_cells(
        self,
        transactions: Sequence[TransactionRecord],
        diagnostics: Sequence[DiagnosticRecord],
        zones: Sequence[CensusZone],
        now: Optional[date] = None,
    ) -> list[ScoredCell]:
        """
        Score every grid cell touched by at least one record.

        Args:
            transactions: Property sales snapshot.
            diagnostics: Energy diagnostics snapshot.
            zones: Census zones.
            now: Reference date for sale ages (today by default).

        Returns:
            All scored cells, ordered by cell key.
        """
        transactions = list(transactions)
        settings = self.settings

        grid = aggregate(
            transactions,
            diagnostics,
            cell_size=settings.cell_size,
            now=now,
            recency_months=settings.recency_months,
            old_building_year=settings.old_building_year,
        )
        zone_index = CensusZoneIndex(zones, overlap_policy=settings.zone_overlap_policy)
        average_price = global_average_price(
            transactions, fallback=settings.fallback_price_per_sqm
        )

        scored = [
            score_cell(grid[key], zone_index, average_price) for key in sorted(grid)
        ]

        self._log_distribution(scored, average_price)
        return scored

    def compute_suspicion_zones(
        self,
        transactions: Sequence[TransactionRecord],
        diagnostics: Sequence[DiagnosticRecord],
        zones: Sequence[CensusZone],
        score_threshold: Optional[int] = None,
        now: Optional[date] = None,
    ) -> list[ScoredCell]:
        """
        Score all cells and keep those strictly above the threshold.

        Args:
            score_threshold: Minimum score (exclusive); the configured
                display threshold when not provided.

        Returns:
            Suspicious cells, ordered by cell key.
        """
        threshold = (
            self.settings.display_threshold if score_threshold is None else score_threshold
        )
        scored = self.score_cells(transactions, diagnostics, zones, now=now)
        return filter_by_score(scored, threshold)

    def count_probable(self, scored: Sequence[ScoredCell]) -> int:
        """Number of cells above the stricter "probable" threshold."""
        return len(filter_by_score(scored, self.settings.probable_threshold))

    def _log_distribution(self, scored: list[ScoredCell], average_price: float) -> None:
        logger.info("Scored %d cells (district mean %.0f EUR/m2)", len(scored), average_price)
        if not scored:
            return

        scores = np.array([s.score for s in scored])
        logger.info("  Score distribution:")
        logger.info("    Mean: %.1f", scores.mean())
        logger.info("    Median: %.1f", np.median(scores))
        logger.info("    Max: %d", scores.max())
        logger.info(
            "    > %d (display): %d",
            self.settings.display_threshold,
            int((scores > self.settings.display_threshold).sum()),
        )
        logger.info(
            "    > %d (probable): %d",
            self.settings.probable_threshold,
            int((scores > self.settings.probable_threshold).sum()),
        )


def filter_by_score(scored: Sequence[ScoredCell], threshold: int) -> list[ScoredCell]:
    """Cells with score strictly greater than threshold, order preserved."""
    return [s for s in scored if s.score > threshold]


def to_dataframe(scored: Sequence[ScoredCell]) -> pd.DataFrame:
    """Flatten scored cells into a DataFrame, one row per cell."""
    return pd.DataFrame([s.to_dict() for s in scored])


def to_geodataframe(scored: Sequence[ScoredCell]) -> gpd.GeoDataFrame:
    """Scored cells as WGS84 points at each cell's representative coordinate."""
    df = to_dataframe(scored)
    if df.empty:
        return gpd.GeoDataFrame(df, geometry=[], crs="EPSG:4326")
    geometry = [Point(lon, lat) for lat, lon in zip(df["latitude"], df["longitude"])]
    return gpd.GeoDataFrame(df, geometry=geometry, crs="EPSG:4326")


def compute_suspicion_zones(
    transactions: Sequence[TransactionRecord],
    diagnostics: Sequence[DiagnosticRecord],
    zones: Sequence[CensusZone],
    cell_size: float = DEFAULT_CELL_SIZE,
    score_threshold: int = DISPLAY_THRESHOLD,
    now: Optional[date] = None,
) -> list[ScoredCell]:
    """
    Convenience function: one scoring pass with default settings.

    Args:
        transactions: Property sales.
        diagnostics: Energy diagnostics.
        zones: Census zones.
        cell_size: Grid cell edge in degrees.
        score_threshold: Keep cells with score strictly above this.
        now: Reference date for sale ages.

    Returns:
        Suspicious cells ordered by cell key.
    """
    scorer = SuspicionScorer(settings=ScoringSettings(cell_size=cell_size))
    return scorer.compute_suspicion_zones(
        transactions, diagnostics, zones, score_threshold=score_threshold, now=now
    )


__all__ = [
    "SIGNAL_CAPS",
    "ScoredCell",
    "ScoringSettings",
    "SuspicionScorer",
    "compute_suspicion_zones",
    "filter_by_score",
    "score_cell",
    "to_dataframe",
    "to_geodataframe",
]
