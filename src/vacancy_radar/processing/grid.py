"""
Spatial grid aggregation of sales and diagnostics.

Point records are bucketed into fixed-size lat/lon cells keyed by
(round(lat / cell_size), round(lon / cell_size)). Each cell accumulates
the counters the suspicion signals are computed from. Cells are created
lazily by their first record and take that record's coordinate as their
representative position (not the geometric cell centre).

Rounding is half-up (floor(x + 0.5)) on both the cell keys and the
month counts.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from vacancy_radar.acquisition import DiagnosticRecord, TransactionRecord

logger = logging.getLogger(__name__)

CellKey = tuple[int, int]

DEFAULT_CELL_SIZE = 0.0006
DEFAULT_RECENCY_MONTHS = 24
DEFAULT_OLD_BUILDING_YEAR = 1945
DEFAULT_FALLBACK_PRICE = 4000.0

DAYS_PER_MONTH = 30

# Lexicographic threshold for "poor" classes among old buildings: E, F, G
POOR_CLASS_THRESHOLD = "E"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class GridCell:
    """Accumulators for one grid cell during a single scoring pass."""

    key: CellKey
    latitude: float
    longitude: float
    old_transactions: int = 0
    recent_transactions: int = 0
    diagnostic_total: int = 0
    failing_diagnostics: int = 0
    old_buildings: int = 0
    old_failing_buildings: int = 0
    prices_per_area: list[float] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return self.old_transactions + self.recent_transactions

    @property
    def average_price_per_area(self) -> Optional[float]:
        if not self.prices_per_area:
            return None
        return sum(self.prices_per_area) / len(self.prices_per_area)

    @property
    def failing_ratio(self) -> float:
        return self.failing_diagnostics / max(1, self.diagnostic_total)


def cell_key(lat: float, lon: float, cell_size: float = DEFAULT_CELL_SIZE) -> CellKey:
    """Grid key of the cell containing a coordinate."""
    return (round_half_up(lat / cell_size), round_half_up(lon / cell_size))


def months_since(transaction: TransactionRecord, now: date) -> int:
    """
    Age of a sale in whole months.

    A precomputed months_ago wins; otherwise the day difference to now is
    divided by 30 and rounded.
    """
    if transaction.months_ago is not None:
        return transaction.months_ago
    days = (now - transaction.transaction_date).days
    return round_half_up(days / DAYS_PER_MONTH)


def global_average_price(
    transactions: Iterable[TransactionRecord],
    fallback: float = DEFAULT_FALLBACK_PRICE,
) -> float:
    """
    Mean price per square metre over every sale with price and surface.

    Computed over the whole dataset, not per cell. Returns the fallback
    when no sale has both fields.
    """
    prices = [p for p in (t.price_per_area for t in transactions) if p is not None]
    if not prices:
        return fallback
    return sum(prices) / len(prices)


def _get_or_create(
    grid: dict[CellKey, GridCell], lat: float, lon: float, cell_size: float
) -> GridCell:
    key = cell_key(lat, lon, cell_size)
    cell = grid.get(key)
    if cell is None:
        cell = GridCell(key=key, latitude=lat, longitude=lon)
        grid[key] = cell
    return cell


def aggregate(
    transactions: Iterable[TransactionRecord],
    diagnostics: Iterable[DiagnosticRecord],
    cell_size: float = DEFAULT_CELL_SIZE,
    now: Optional[date] = None,
    recency_months: int = DEFAULT_RECENCY_MONTHS,
    old_building_year: int = DEFAULT_OLD_BUILDING_YEAR,
) -> dict[CellKey, GridCell]:
    """
    Bucket sales and diagnostics into grid cells.

    Sales older than recency_months count as old, the rest as recent;
    priced sales add their price per square metre to the cell. Diagnostics
    count towards the cell total, the failing count (F/G), the old-building
    count (built before old_building_year) and, for old buildings of class
    E or worse by letter order, the old-and-failing count.

    Records missing a coordinate are dropped.

    Args:
        transactions: Property sales.
        diagnostics: Energy diagnostics.
        cell_size: Cell edge in degrees.
        now: Reference date for sale ages (today by default).
        recency_months: Age threshold separating old from recent sales.
        old_building_year: Construction year threshold for old buildings.

    Returns:
        Mapping of cell key to GridCell, in first-contribution order.

    Raises:
        ValueError: If cell_size is not positive.
    """
    if cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")

    now = now or date.today()
    grid: dict[CellKey, GridCell] = {}
    dropped = 0

    for t in transactions:
        if not t.has_coordinates:
            dropped += 1
            continue
        cell = _get_or_create(grid, t.latitude, t.longitude, cell_size)
        if months_since(t, now) > recency_months:
            cell.old_transactions += 1
        else:
            cell.recent_transactions += 1
        price = t.price_per_area
        if price is not None:
            cell.prices_per_area.append(price)

    for d in diagnostics:
        if not d.has_coordinates:
            dropped += 1
            continue
        cell = _get_or_create(grid, d.latitude, d.longitude, cell_size)
        cell.diagnostic_total += 1
        if d.is_failing:
            cell.failing_diagnostics += 1
        if d.year_built and d.year_built < old_building_year:
            cell.old_buildings += 1
            if d.energy_class >= POOR_CLASS_THRESHOLD:
                cell.old_failing_buildings += 1

    if dropped:
        logger.debug("Dropped %d records without coordinates", dropped)
    logger.debug("Aggregated records into %d cells (cell size %.6f)", len(grid), cell_size)

    return grid
