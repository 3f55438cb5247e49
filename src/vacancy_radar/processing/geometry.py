"""
Planar geometry helpers for (lat, lon) polygons.

Polygons are ordered vertex sequences of (lat, lon) pairs, implicitly
closed (the last vertex connects back to the first).
"""

from typing import Sequence

from shapely.geometry import Polygon

LatLon = tuple[float, float]


def point_in_polygon(lat: float, lon: float, polygon: Sequence[LatLon]) -> bool:
    """
    Even-odd ray-casting point-in-polygon test.

    A horizontal ray is cast from the point; each polygon edge it crosses
    toggles the result. Works for any simple polygon, convex or not, in
    either winding. Points exactly on an edge or vertex may fall either way.

    Args:
        lat: Point latitude (y).
        lon: Point longitude (x).
        polygon: Vertices as (lat, lon); fewer than 3 contains nothing.

    Returns:
        True if the point is inside the polygon.
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        yi, xi = polygon[i]
        yj, xj = polygon[j]
        if (yi > lat) != (yj > lat) and lon < (xj - xi) * (lat - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def polygon_area(polygon: Sequence[LatLon]) -> float:
    """Planar area in squared degrees; 0.0 for degenerate input."""
    if len(polygon) < 3:
        return 0.0
    # shapely works in (x, y) = (lon, lat)
    return Polygon([(lon, lat) for lat, lon in polygon]).area
