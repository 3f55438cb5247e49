"""
Census zone index: point location and population-wide baselines.

The index answers "which census zone contains this point" by a linear
scan over the zone polygons, and exposes the baseline vacancy and
secondary-residence rates the excess signals are measured against.
"""

import logging
from typing import Optional, Sequence

from vacancy_radar.acquisition import CensusZone

from .geometry import point_in_polygon, polygon_area

logger = logging.getLogger(__name__)

OVERLAP_POLICIES = ("first_match", "smallest_area")


def _zone_mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


class CensusZoneIndex:
    """
    Read-only index over a fixed set of census zones.

    Baselines are the unweighted mean across zones of each zone's rate:
    every zone counts once, whatever its dwelling count. Zones without
    dwellings are left out of the means.

    Usage:
        index = CensusZoneIndex(zones)
        zone = index.zone_containing(47.2138, -1.5535)
        baseline = index.average_vacancy_rate

    Attributes:
        zones: Zones in input order.
        overlap_policy: How overlapping polygons are resolved.
        average_vacancy_rate: Mean vacancy rate, None without usable zones.
        average_secondary_rate: Mean secondary rate, None without usable zones.
    """

    def __init__(
        self,
        zones: Sequence[CensusZone],
        overlap_policy: str = "first_match",
    ) -> None:
        """
        Initialize the index.

        Args:
            zones: Census zones, in priority order for first_match.
            overlap_policy: "first_match" returns the first containing zone
                in input order; "smallest_area" returns the containing zone
                with the smallest polygon, input order breaking ties.

        Raises:
            ValueError: If the overlap policy is unknown.
        """
        if overlap_policy not in OVERLAP_POLICIES:
            raise ValueError(
                f"Unknown overlap policy {overlap_policy!r}; "
                f"expected one of {', '.join(OVERLAP_POLICIES)}"
            )

        self.zones = list(zones)
        self.overlap_policy = overlap_policy

        populated = [z for z in self.zones if z.total_dwellings > 0]
        self.average_vacancy_rate = _zone_mean([z.vacancy_rate for z in populated])
        self.average_secondary_rate = _zone_mean([z.secondary_rate for z in populated])

        self._areas = (
            [polygon_area(z.polygon) for z in self.zones]
            if overlap_policy == "smallest_area"
            else None
        )

        logger.debug(
            "Indexed %d census zones (policy=%s, avg vacancy=%s, avg secondary=%s)",
            len(self.zones),
            overlap_policy,
            self.average_vacancy_rate,
            self.average_secondary_rate,
        )

    def __len__(self) -> int:
        return len(self.zones)

    def zone_containing(self, lat: float, lon: float) -> Optional[CensusZone]:
        """
        Find the census zone containing a point.

        Args:
            lat: Point latitude.
            lon: Point longitude.

        Returns:
            The containing zone per the overlap policy, or None.
        """
        if self.overlap_policy == "first_match":
            for zone in self.zones:
                if point_in_polygon(lat, lon, zone.polygon):
                    return zone
            return None

        best: Optional[CensusZone] = None
        best_area = 0.0
        for zone, area in zip(self.zones, self._areas):
            if point_in_polygon(lat, lon, zone.polygon) and (best is None or area < best_area):
                best, best_area = zone, area
        return best

    def total_dwellings(self) -> int:
        return sum(z.total_dwellings for z in self.zones)

    def dwelling_weighted_vacancy_rate(self) -> Optional[float]:
        """Vacant dwellings over all dwellings, pooled across zones."""
        total = self.total_dwellings()
        if total <= 0:
            return None
        return sum(z.vacant_dwellings for z in self.zones) / total

    def dwelling_weighted_secondary_rate(self) -> Optional[float]:
        """Secondary residences over all dwellings, pooled across zones."""
        total = self.total_dwellings()
        if total <= 0:
            return None
        return sum(z.secondary_residences for z in self.zones) / total
