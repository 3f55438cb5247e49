"""
Suspicion signal calculators.

Seven independent signals, each a pure function of one grid cell plus
read-only baselines, each capped at a fixed maximum:

1. Stagnation (0-25) - old sales with no recent resale
2. Failing ratio (0-20) - share of F/G energy diagnostics
3. Invisibility (0-10) - sales recorded but no diagnostic at all
4. Excess vacancy (0-20) - enclosing census zone above the mean vacancy rate
5. Excess secondary (0-10) - enclosing census zone above the mean secondary rate
6. Aging decay (0-10) - pre-1945 buildings rated E or worse
7. Price anomaly (0-5) - cell price per m2 well below the district mean

The caps sum to 100; the total is rounded and capped at 100.
"""

from dataclasses import asdict, dataclass
from typing import Any, Optional

from vacancy_radar.acquisition import CensusZone
from vacancy_radar.processing.grid import GridCell, round_half_up

SIGNAL_CAPS = {
    "stagnation": 25.0,
    "failing_ratio": 20.0,
    "invisibility": 10.0,
    "excess_vacancy": 20.0,
    "excess_secondary": 10.0,
    "aging_decay": 10.0,
    "price_anomaly": 5.0,
}

MAX_SCORE = 100

# Mixed-activity cells are scaled against this instead of the full cap
MIXED_STAGNATION_WEIGHT = 10.0

# A cell is anomalous below this fraction of the district mean price
PRICE_ANOMALY_RATIO = 0.7


@dataclass(frozen=True)
class SignalVector:
    """Per-cell sub-scores and the combined suspicion score."""

    stagnation: float = 0.0
    failing_ratio: float = 0.0
    invisibility: float = 0.0
    excess_vacancy: float = 0.0
    excess_secondary: float = 0.0
    aging_decay: float = 0.0
    price_anomaly: float = 0.0
    score: int = 0

    @property
    def raw_total(self) -> float:
        return sum(getattr(self, name) for name in SIGNAL_CAPS)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def stagnation_signal(cell: GridCell) -> float:
    """Full cap when every sale is old; otherwise scaled by the old share."""
    if cell.old_transactions > 0 and cell.recent_transactions == 0:
        return SIGNAL_CAPS["stagnation"]
    if cell.old_transactions > 0:
        return MIXED_STAGNATION_WEIGHT * cell.old_transactions / cell.transaction_count
    return 0.0


def failing_ratio_signal(cell: GridCell) -> float:
    if cell.failing_diagnostics > 0:
        return SIGNAL_CAPS["failing_ratio"] * cell.failing_ratio
    return 0.0


def invisibility_signal(cell: GridCell) -> float:
    """Sales without any diagnostic suggest dwellings that were never let."""
    if cell.diagnostic_total == 0 and cell.transaction_count > 0:
        return SIGNAL_CAPS["invisibility"]
    return 0.0


def _excess_over_baseline(rate: float, baseline: Optional[float], cap: float) -> float:
    if baseline is None or baseline <= 0 or rate <= baseline:
        return 0.0
    return min(cap, cap * (rate - baseline) / baseline)


def excess_vacancy_signal(
    zone: Optional[CensusZone], average_vacancy: Optional[float]
) -> float:
    """Relative excess of the zone vacancy rate over the zone mean."""
    if zone is None:
        return 0.0
    return _excess_over_baseline(
        zone.vacancy_rate, average_vacancy, SIGNAL_CAPS["excess_vacancy"]
    )


def excess_secondary_signal(
    zone: Optional[CensusZone], average_secondary: Optional[float]
) -> float:
    """Relative excess of the zone secondary-residence rate over the zone mean."""
    if zone is None:
        return 0.0
    return _excess_over_baseline(
        zone.secondary_rate, average_secondary, SIGNAL_CAPS["excess_secondary"]
    )


def aging_decay_signal(cell: GridCell) -> float:
    if cell.old_buildings > 0:
        return SIGNAL_CAPS["aging_decay"] * cell.old_failing_buildings / max(1, cell.old_buildings)
    return 0.0


def price_anomaly_signal(cell: GridCell, average_price: float) -> float:
    """
    Penalise cells whose mean price per m2 is under 70% of the district mean.

    Args:
        cell: Grid cell with its collected prices per m2.
        average_price: District-wide mean price per m2.
    """
    cell_average = cell.average_price_per_area
    if cell_average is None or average_price <= 0:
        return 0.0
    if cell_average < PRICE_ANOMALY_RATIO * average_price:
        cap = SIGNAL_CAPS["price_anomaly"]
        return min(cap, cap * (average_price - cell_average) / average_price)
    return 0.0


def combine_signals(
    stagnation: float,
    failing_ratio: float,
    invisibility: float,
    excess_vacancy: float,
    excess_secondary: float,
    aging_decay: float,
    price_anomaly: float,
) -> SignalVector:
    """Assemble a SignalVector; score = min(100, round(sum of signals))."""
    total = (
        stagnation
        + failing_ratio
        + invisibility
        + excess_vacancy
        + excess_secondary
        + aging_decay
        + price_anomaly
    )
    return SignalVector(
        stagnation=stagnation,
        failing_ratio=failing_ratio,
        invisibility=invisibility,
        excess_vacancy=excess_vacancy,
        excess_secondary=excess_secondary,
        aging_decay=aging_decay,
        price_anomaly=price_anomaly,
        score=min(MAX_SCORE, round_half_up(total)),
    )
