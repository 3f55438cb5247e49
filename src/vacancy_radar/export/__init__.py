"""
Export module for Vacancy Radar deliverables.

Provides the interactive HTML map of suspicion zones, census zones,
sales and energy diagnostics.
"""

from .map_generator import SuspicionMapGenerator, generate_map

__all__ = [
    "SuspicionMapGenerator",
    "generate_map",
]
