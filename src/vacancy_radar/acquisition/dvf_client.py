"""
DVF property-sale acquisition client.

This module provides the DVFClient for fetching geolocated property
mutations from the Cerema "DVF open data" API, filtered by INSEE commune
code and bounding box, most recent sales first.

API: https://apidf-preprod.cerema.fr/dvf_opendata/geomutations/
"""

import logging
import math
from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError
from shapely.errors import ShapelyError
from shapely.geometry import shape

from .base_client import AsyncAPIClient
from .models import DVF_CONFIG, APIClientConfig, TargetArea
from .records import TransactionRecord

logger = logging.getLogger(__name__)

GEOMUTATIONS_PATH = "geomutations/"

# Keys are our standardized names, values are candidate DVF property names
# in priority order.
DVF_FIELD_MAPPINGS = {
    "transaction_date": ["datemut"],
    "price_total": ["valeurfonc"],
    "surface_area": ["sbati"],
    "nature_of_good": ["libtypbien", "libnatmut"],
    "local_count": ["nblocmut"],
}


def _first_present(props: dict[str, Any], names: list[str]) -> Any:
    for name in names:
        value = props.get(name)
        if value not in (None, ""):
            return value
    return None


def to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def extract_coordinates(geometry: Optional[dict[str, Any]]) -> tuple[Optional[float], Optional[float]]:
    """
    Derive a single (lat, lon) for a mutation geometry.

    Points are used as-is, multi-points by their first member, polygons by
    the average of their exterior-ring vertices (closing vertex included).
    Any other or unreadable geometry yields (None, None).
    """
    if not isinstance(geometry, dict) or not geometry.get("coordinates"):
        return None, None

    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, AttributeError, IndexError):
        logger.debug("Unreadable geometry: %s", geometry.get("type"))
        return None, None

    if geom.is_empty:
        return None, None

    if geom.geom_type == "Point":
        return geom.y, geom.x
    if geom.geom_type == "MultiPoint":
        first = geom.geoms[0]
        return first.y, first.x
    if geom.geom_type == "MultiPolygon":
        geom = geom.geoms[0]
    if geom.geom_type == "Polygon":
        ring = list(geom.exterior.coords)
        lon = sum(c[0] for c in ring) / len(ring)
        lat = sum(c[1] for c in ring) / len(ring)
        return lat, lon

    return None, None


class DVFClient(AsyncAPIClient[TransactionRecord]):
    """
    Client for fetching property sales from the DVF open-data API.

    Usage:
        async with DVFClient() as client:
            sales = await client.fetch_records(TargetArea())
    """

    name = "DVF"

    def __init__(
        self,
        config: Optional[APIClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config or DVF_CONFIG, transport=transport)

    def get_endpoint_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/{GEOMUTATIONS_PATH}"

    def build_query_params(self, area: TargetArea) -> dict[str, Any]:
        return {
            "code_insee": area.commune_code,
            "in_bbox": area.get_bounding_box().to_bbox_param(),
            "page_size": self.config.page_size,
            "ordering": "-datemut",
        }

    def parse_feature(self, feature: dict[str, Any]) -> Optional[TransactionRecord]:
        """
        Map one GeoJSON feature (or flat result row) to a TransactionRecord.

        Returns:
            The record, or None when it has no usable coordinates or date.
        """
        props = feature.get("properties") or feature
        if not isinstance(props, dict):
            return None
        lat, lon = extract_coordinates(feature.get("geometry"))
        if lat is None or lon is None:
            return None

        transaction_date = to_date(
            _first_present(props, DVF_FIELD_MAPPINGS["transaction_date"])
        )
        if transaction_date is None:
            return None

        local_count = to_float(_first_present(props, DVF_FIELD_MAPPINGS["local_count"]))
        nature = _first_present(props, DVF_FIELD_MAPPINGS["nature_of_good"])

        try:
            return TransactionRecord(
                latitude=lat,
                longitude=lon,
                transaction_date=transaction_date,
                price_total=to_float(_first_present(props, DVF_FIELD_MAPPINGS["price_total"])),
                surface_area=to_float(_first_present(props, DVF_FIELD_MAPPINGS["surface_area"])),
                nature_of_good=str(nature) if nature is not None else None,
                local_count=int(local_count) if local_count is not None else None,
            )
        except ValidationError as e:
            logger.debug("Skipping invalid DVF row: %s", e)
            return None

    def parse_rows(self, payload: dict[str, Any]) -> list[TransactionRecord]:
        rows = payload.get("results") or payload.get("features") or []
        # the paginated endpoint nests a FeatureCollection under "results"
        if isinstance(rows, dict):
            rows = rows.get("features", [])
        if not isinstance(rows, list):
            rows = []

        records = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            record = self.parse_feature(row)
            if record is not None:
                records.append(record)

        skipped = len(rows) - len(records)
        if skipped:
            logger.debug("Dropped %d DVF rows without coordinates or date", skipped)
        return records
