"""
Dataset summary statistics.

Headline figures for one scoring pass: how much was collected, how the
energy classes are distributed, what the census says about vacancy and
how many cells crossed the suspicion thresholds.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Optional, Sequence

import pandas as pd

from vacancy_radar.acquisition import (
    ENERGY_CLASSES,
    FAILING_CLASSES,
    CensusZone,
    DiagnosticRecord,
    TransactionRecord,
)

from .grid import DEFAULT_RECENCY_MONTHS, months_since
from .zone_index import CensusZoneIndex

logger = logging.getLogger(__name__)


@dataclass
class DatasetSummary:
    """Aggregate statistics over the inputs and outputs of a scoring pass."""

    transaction_count: int = 0
    old_transaction_count: int = 0
    diagnostic_count: int = 0
    failing_count: int = 0
    failing_ratio: float = 0.0
    class_distribution: dict[str, int] = field(
        default_factory=lambda: {c: 0 for c in ENERGY_CLASSES}
    )
    zone_count: int = 0
    census_vacancy_pct: Optional[float] = None
    census_secondary_pct: Optional[float] = None
    suspicion_zone_count: int = 0
    probable_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _transactions_frame(
    transactions: Sequence[TransactionRecord], now: date
) -> pd.DataFrame:
    return pd.DataFrame(
        {"months": [months_since(t, now) for t in transactions]},
        dtype="int64",
    )


def _diagnostics_frame(diagnostics: Sequence[DiagnosticRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        {"energy_class": [d.energy_class for d in diagnostics]},
        dtype="object",
    )


def summarize(
    transactions: Sequence[TransactionRecord],
    diagnostics: Sequence[DiagnosticRecord],
    zones: Sequence[CensusZone],
    scored_cells: Sequence[Any] = (),
    now: Optional[date] = None,
    recency_months: int = DEFAULT_RECENCY_MONTHS,
    display_threshold: int = 15,
    probable_threshold: int = 30,
) -> DatasetSummary:
    """
    Compute headline statistics for one scoring pass.

    Census percentages are dwelling-weighted (pooled over all zones), unlike
    the per-zone means the excess signals compare against.

    Args:
        transactions: Property sales.
        diagnostics: Energy diagnostics.
        zones: Census zones.
        scored_cells: Scored cells (anything exposing a ``score``).
        now: Reference date for sale ages (today by default).
        recency_months: Age threshold for old sales.
        display_threshold: Score above which a cell is a suspicion zone.
        probable_threshold: Score above which vacancy is probable.

    Returns:
        DatasetSummary
    """
    now = now or date.today()
    transactions = list(transactions)
    diagnostics = list(diagnostics)

    tx_df = _transactions_frame(transactions, now)
    dpe_df = _diagnostics_frame(diagnostics)
    scores = pd.Series([s.score for s in scored_cells], dtype="int64")

    counts = dpe_df["energy_class"].value_counts()
    distribution = {c: int(counts.get(c, 0)) for c in ENERGY_CLASSES}
    failing = sum(distribution[c] for c in FAILING_CLASSES)

    zone_index = CensusZoneIndex(zones)
    vacancy_rate = zone_index.dwelling_weighted_vacancy_rate()
    secondary_rate = zone_index.dwelling_weighted_secondary_rate()

    summary = DatasetSummary(
        transaction_count=len(tx_df),
        old_transaction_count=int((tx_df["months"] > recency_months).sum()),
        diagnostic_count=len(dpe_df),
        failing_count=failing,
        failing_ratio=failing / len(dpe_df) if len(dpe_df) else 0.0,
        class_distribution=distribution,
        zone_count=len(zone_index),
        census_vacancy_pct=vacancy_rate * 100 if vacancy_rate is not None else None,
        census_secondary_pct=secondary_rate * 100 if secondary_rate is not None else None,
        suspicion_zone_count=int((scores > display_threshold).sum()),
        probable_count=int((scores > probable_threshold).sum()),
    )

    logger.info(
        "Summary: %d sales (%d old), %d diagnostics (%d F/G), %d suspicion zones",
        summary.transaction_count,
        summary.old_transaction_count,
        summary.diagnostic_count,
        summary.failing_count,
        summary.suspicion_zone_count,
    )
    return summary
