"""
Vacancy Radar.

Flags housing that is probably vacant or withheld from the market by
crossing property sales (DVF), energy diagnostics (DPE) and census
zones (INSEE IRIS) on a fine spatial grid.
"""

__version__ = "0.1.0"
