"""
Census reference data loader.

IRIS zones are static reference data: a polygon plus a single census-year
snapshot of housing-stock counts. They are read once from
config/iris_zones.yaml; the built-in Bouffay zones are used when the file
is absent.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .exceptions import InvalidResponseError
from .records import CensusZone

logger = logging.getLogger(__name__)

DEFAULT_ZONES_FILE = Path("config/iris_zones.yaml")

# 2021 census, Nantes centre-ville
BOUFFAY_IRIS_ZONES: list[dict[str, Any]] = [
    {
        "id": "441090101",
        "name": "Bouffay",
        "census_year": 2021,
        "total_dwellings": 1842,
        "primary_residences": 1513,
        "secondary_residences": 118,
        "vacant_dwellings": 211,
        "polygon": [
            (47.2105, -1.5570), (47.2105, -1.5500), (47.2135, -1.5480),
            (47.2155, -1.5490), (47.2155, -1.5565), (47.2135, -1.5575),
        ],
    },
    {
        "id": "441090102",
        "name": "Decré - Cathédrale",
        "census_year": 2021,
        "total_dwellings": 2105,
        "primary_residences": 1768,
        "secondary_residences": 84,
        "vacant_dwellings": 253,
        "polygon": [
            (47.2135, -1.5575), (47.2155, -1.5565), (47.2175, -1.5555),
            (47.2175, -1.5595), (47.2155, -1.5595), (47.2135, -1.5590),
        ],
    },
    {
        "id": "441090103",
        "name": "Château - Maillard",
        "census_year": 2021,
        "total_dwellings": 1560,
        "primary_residences": 1310,
        "secondary_residences": 62,
        "vacant_dwellings": 188,
        "polygon": [
            (47.2105, -1.5500), (47.2105, -1.5465), (47.2135, -1.5465),
            (47.2155, -1.5490), (47.2135, -1.5480),
        ],
    },
    {
        "id": "441090104",
        "name": "Feydeau - Commerce",
        "census_year": 2021,
        "total_dwellings": 1920,
        "primary_residences": 1574,
        "secondary_residences": 135,
        "vacant_dwellings": 211,
        "polygon": [
            (47.2105, -1.5570), (47.2135, -1.5590), (47.2155, -1.5595),
            (47.2155, -1.5570), (47.2105, -1.5595),
        ],
    },
]


def parse_census_zones(entries: list[dict[str, Any]]) -> list[CensusZone]:
    """
    Build CensusZone models from raw mappings.

    Raises:
        InvalidResponseError: If an entry is missing fields or malformed.
    """
    zones = []
    for i, entry in enumerate(entries):
        try:
            polygon = tuple(
                (float(vertex[0]), float(vertex[1]))
                for vertex in entry.get("polygon", [])
            )
            zones.append(CensusZone(**{**entry, "polygon": polygon}))
        except (ValidationError, TypeError, ValueError, IndexError) as e:
            raise InvalidResponseError(
                f"Invalid census zone at position {i} ({entry.get('id', '?')})",
                cause=e,
            )
    return zones


def load_census_zones(
    zones_path: Optional[Path] = None,
    project_root: Optional[Path] = None,
) -> list[CensusZone]:
    """
    Load census zones from YAML, falling back to the built-in Bouffay zones.

    Args:
        zones_path: Path to iris_zones.yaml. Auto-detected if not provided.
        project_root: Project root directory for file lookup.

    Returns:
        Zones in file order.
    """
    if zones_path is None:
        if project_root is None:
            project_root = Path(__file__).parent.parent.parent.parent
        zones_path = project_root / DEFAULT_ZONES_FILE

    if not zones_path.exists():
        logger.warning("Census zones not found at %s, using built-in zones", zones_path)
        return parse_census_zones(BOUFFAY_IRIS_ZONES)

    with open(zones_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    zones = parse_census_zones(data.get("zones", []))
    logger.info("Loaded %d census zones from %s", len(zones), zones_path)
    return zones
