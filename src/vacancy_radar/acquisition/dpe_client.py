"""
DPE energy-diagnostic acquisition client.

This module provides the DPEClient for fetching energy-performance
diagnostics of existing dwellings from the ADEME data-fair API
(dataset "dpe03existant"), filtered by commune name and bounding box.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .base_client import AsyncAPIClient
from .dvf_client import to_date, to_float
from .models import DPE_CONFIG, APIClientConfig, TargetArea
from .records import DiagnosticRecord

logger = logging.getLogger(__name__)

DATASET_ID = "dpe03existant"

DPE_SELECT_FIELDS = [
    "N°DPE",
    "Etiquette_DPE",
    "Etiquette_GES",
    "Date_établissement_DPE",
    "Année_construction",
    "Type_bâtiment",
    "Surface_habitable_logement",
    "_geopoint",
]


def parse_geopoint(value: Any) -> tuple[Optional[float], Optional[float]]:
    """Split a data-fair "_geopoint" string ("lat,lon") into floats."""
    if not value:
        return None, None
    parts = str(value).split(",")
    if len(parts) != 2:
        return None, None
    lat, lon = to_float(parts[0].strip()), to_float(parts[1].strip())
    if lat is None or lon is None:
        return None, None
    return lat, lon


class DPEClient(AsyncAPIClient[DiagnosticRecord]):
    """
    Client for fetching energy diagnostics from the ADEME open-data API.

    Usage:
        async with DPEClient() as client:
            diagnostics = await client.fetch_records(TargetArea())
    """

    name = "DPE"

    def __init__(
        self,
        config: Optional[APIClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config or DPE_CONFIG, transport=transport)

    def get_endpoint_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/{DATASET_ID}/lines"

    def build_query_params(self, area: TargetArea) -> dict[str, Any]:
        return {
            "size": self.config.page_size,
            "q_fields": "commune",
            "q": area.commune_name,
            "bbox": area.get_bounding_box().to_bbox_param(),
            "select": ",".join(DPE_SELECT_FIELDS),
        }

    def parse_row(self, row: dict[str, Any]) -> Optional[DiagnosticRecord]:
        """
        Map one data-fair line to a DiagnosticRecord.

        Returns:
            The record, or None without coordinates or a valid A..G class.
        """
        lat, lon = parse_geopoint(row.get("_geopoint"))
        if lat is None or lon is None:
            return None

        year_built = to_float(row.get("Année_construction"))
        diagnostic_id = row.get("N°DPE")
        try:
            return DiagnosticRecord(
                latitude=lat,
                longitude=lon,
                energy_class=row.get("Etiquette_DPE") or "",
                ghg_class=row.get("Etiquette_GES"),
                year_built=int(year_built) if year_built is not None else None,
                surface_area=to_float(row.get("Surface_habitable_logement")),
                established_date=to_date(row.get("Date_établissement_DPE")),
                building_type=row.get("Type_bâtiment"),
                diagnostic_id=str(diagnostic_id) if diagnostic_id is not None else None,
            )
        except ValidationError as e:
            logger.debug("Skipping invalid DPE row: %s", e)
            return None

    def parse_rows(self, payload: dict[str, Any]) -> list[DiagnosticRecord]:
        rows = payload.get("results") or []
        if not isinstance(rows, list):
            rows = []
        records = [
            r for r in (self.parse_row(row) for row in rows if isinstance(row, dict)) if r is not None
        ]

        skipped = len(rows) - len(records)
        if skipped:
            logger.debug("Dropped %d DPE rows without coordinates or class", skipped)
        return records
