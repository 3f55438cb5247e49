"""
Suspicion Scoring Module for Vacancy Radar.

This module provides the seven vacancy signals and the grid scoring
engine that combines them into a 0-100 suspicion score per cell.
"""

from .signals import SIGNAL_CAPS, SignalVector, combine_signals
from .suspicion_scorer import (
    ScoredCell,
    ScoringSettings,
    SuspicionScorer,
    compute_suspicion_zones,
    filter_by_score,
    to_dataframe,
    to_geodataframe,
)

__all__ = [
    "SIGNAL_CAPS",
    "SignalVector",
    "combine_signals",
    "ScoredCell",
    "ScoringSettings",
    "SuspicionScorer",
    "compute_suspicion_zones",
    "filter_by_score",
    "to_dataframe",
    "to_geodataframe",
]
