"""
Data Processing Module for Vacancy Radar.

This module provides the geometry primitives, the census zone index and
the spatial grid that sales and diagnostics are aggregated into.
"""

from .geometry import point_in_polygon, polygon_area
from .grid import GridCell, aggregate, cell_key, global_average_price, months_since
from .summary import DatasetSummary, summarize
from .zone_index import OVERLAP_POLICIES, CensusZoneIndex

__all__ = [
    "point_in_polygon",
    "polygon_area",
    "GridCell",
    "aggregate",
    "cell_key",
    "global_average_price",
    "months_since",
    "CensusZoneIndex",
    "OVERLAP_POLICIES",
    "DatasetSummary",
    "summarize",
]
