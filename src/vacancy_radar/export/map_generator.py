"""
Interactive Map Generator for Vacancy Suspicion Analysis.

Generates HTML maps using Folium with census zone polygons, suspicion
circles sized by score and toggleable sales / diagnostics layers.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

import folium

from vacancy_radar.acquisition import (
    CensusZone,
    DiagnosticRecord,
    TargetArea,
    TransactionRecord,
)
from vacancy_radar.processing.grid import DEFAULT_RECENCY_MONTHS, months_since
from vacancy_radar.scoring import SIGNAL_CAPS, ScoredCell

logger = logging.getLogger(__name__)

DEFAULT_CENTER = TargetArea().center
DEFAULT_ZOOM = 16

# Layer colors
COLORS = {
    "transactions": "#3b82f6",
    "old_transactions": "#f59e0b",
    "diagnostics": "#ef4444",
    "census": "#06b6d4",
    "suspicion": "#a855f7",
}

# Official energy label colors
ENERGY_CLASS_COLORS = {
    "A": "#009c3b",
    "B": "#51b84b",
    "C": "#8cc63f",
    "D": "#f5ec42",
    "E": "#f6a723",
    "F": "#eb6a24",
    "G": "#e3001b",
}

SIGNAL_LABELS = {
    "stagnation": ("Sales stagnation", "#3b82f6"),
    "failing_ratio": ("Failing diagnostics", "#ef4444"),
    "invisibility": ("No diagnostics", "#f59e0b"),
    "excess_vacancy": ("Census vacancy", "#06b6d4"),
    "excess_secondary": ("Secondary homes", "#f59e0b"),
    "aging_decay": ("Old degraded stock", "#f97316"),
    "price_anomaly": ("Price anomaly", "#ec4899"),
}


def zone_fill_color(vacancy_rate: float) -> str:
    """Red above 12% vacancy, amber above 8%, cyan otherwise."""
    if vacancy_rate > 0.12:
        return "#ef4444"
    if vacancy_rate > 0.08:
        return "#f59e0b"
    return "#06b6d4"


def circle_radius(score: int) -> float:
    return 15 + score * 0.3


def circle_opacity(score: int) -> float:
    return score / 150


class SuspicionMapGenerator:
    """Generate interactive HTML maps for vacancy suspicion analysis."""

    def __init__(
        self,
        output_dir: Path | str = "deliverables",
        center: tuple[float, float] = DEFAULT_CENTER,
        zoom: int = DEFAULT_ZOOM,
    ):
        """
        Initialize the map generator.

        Args:
            output_dir: Directory for output files
            center: Map center coordinates (lat, lon)
            zoom: Initial zoom level
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.center = center
        self.zoom = zoom

    def build(
        self,
        scored: Sequence[ScoredCell],
        zones: Sequence[CensusZone] = (),
        transactions: Sequence[TransactionRecord] = (),
        diagnostics: Sequence[DiagnosticRecord] = (),
        now: Optional[date] = None,
        recency_months: int = DEFAULT_RECENCY_MONTHS,
    ) -> folium.Map:
        """
        Build the folium map without saving it.

        Args:
            scored: Suspicion cells to draw as circles
            zones: Census zones to draw as polygons
            transactions: Sales for the DVF layer
            diagnostics: Diagnostics for the DPE layer
            now: Reference date for highlighting old sales
            recency_months: Age threshold for old sales

        Returns:
            folium.Map with one FeatureGroup per layer
        """
        now = now or date.today()

        m = folium.Map(
            location=self.center,
            zoom_start=self.zoom,
            tiles="cartodbpositron",
        )
        folium.TileLayer("OpenStreetMap", name="Streets").add_to(m)
        folium.TileLayer("cartodbdark_matter", name="Dark").add_to(m)

        census_layer = folium.FeatureGroup(name="Census zones (IRIS)")
        for zone in zones:
            self._add_zone(census_layer, zone)
        census_layer.add_to(m)

        suspicion_layer = folium.FeatureGroup(name="Suspicion zones")
        for cell in scored:
            self._add_suspicion_circle(suspicion_layer, cell)
        suspicion_layer.add_to(m)

        sales_layer = folium.FeatureGroup(name="Sales (DVF)", show=False)
        sales_added = 0
        for t in transactions:
            if t.has_coordinates:
                self._add_transaction(sales_layer, t, months_since(t, now) > recency_months)
                sales_added += 1
        sales_layer.add_to(m)

        dpe_layer = folium.FeatureGroup(name="Energy diagnostics (DPE)", show=False)
        dpe_added = 0
        for d in diagnostics:
            if d.has_coordinates:
                self._add_diagnostic(dpe_layer, d)
                dpe_added += 1
        dpe_layer.add_to(m)

        logger.info(
            "Map layers: %d zones, %d suspicion circles, %d sales, %d diagnostics",
            len(zones),
            len(scored),
            sales_added,
            dpe_added,
        )

        self._add_legend(m)
        folium.LayerControl(collapsed=False).add_to(m)
        return m

    def generate(
        self,
        scored: Sequence[ScoredCell],
        zones: Sequence[CensusZone] = (),
        transactions: Sequence[TransactionRecord] = (),
        diagnostics: Sequence[DiagnosticRecord] = (),
        filename: str = "bouffay_vacancy_map.html",
        now: Optional[date] = None,
    ) -> Path:
        """
        Generate an interactive HTML map of suspicion zones.

        Returns:
            Path to the generated HTML file
        """
        output_path = self.output_dir / filename
        logger.info("Generating interactive map: %s", output_path)

        m = self.build(scored, zones, transactions, diagnostics, now=now)
        m.save(output_path)

        logger.info("Map saved: %s", output_path)
        return output_path

    def _add_zone(self, layer: folium.FeatureGroup, zone: CensusZone) -> None:
        vacancy = zone.vacancy_rate
        intensity = min(1.0, vacancy / 0.2)
        folium.Polygon(
            locations=[list(vertex) for vertex in zone.polygon],
            color=COLORS["census"],
            weight=2,
            fill=True,
            fill_color=zone_fill_color(vacancy),
            fill_opacity=0.08 + intensity * 0.15,
            dash_array="6 3",
            popup=folium.Popup(self._build_zone_popup(zone), max_width=300),
            tooltip=f"IRIS {zone.name}",
        ).add_to(layer)

    def _add_suspicion_circle(self, layer: folium.FeatureGroup, scored: ScoredCell) -> None:
        folium.CircleMarker(
            location=[scored.cell.latitude, scored.cell.longitude],
            radius=circle_radius(scored.score),
            color=COLORS["suspicion"],
            weight=1,
            opacity=0.4,
            fill=True,
            fill_color=COLORS["suspicion"],
            fill_opacity=circle_opacity(scored.score),
            popup=folium.Popup(self._build_suspicion_popup(scored), max_width=320),
            tooltip=f"Suspicion {scored.score}/100",
        ).add_to(layer)

    def _add_transaction(
        self, layer: folium.FeatureGroup, t: TransactionRecord, is_old: bool
    ) -> None:
        color = COLORS["old_transactions"] if is_old else COLORS["transactions"]
        price = f"{t.price_total:,.0f} EUR" if t.price_total else "N/A"
        surface = f"{t.surface_area:.0f} m2" if t.surface_area else "N/A"
        per_area = f"{t.price_per_area:,.0f} EUR/m2" if t.price_per_area else "N/A"
        popup_html = f"""
        <div style="font-family: Arial, sans-serif; font-size: 12px; min-width: 200px;">
            <strong>{t.street or t.nature_of_good or "Sale"}</strong><br>
            Date: {t.transaction_date.isoformat()}<br>
            Price: {price} ({surface}, {per_area})
            {"<div style='color: #b45309; margin-top: 4px;'>No resale for over 2 years</div>" if is_old else ""}
        </div>
        """
        folium.CircleMarker(
            location=[t.latitude, t.longitude],
            radius=6,
            color=color,
            fill=True,
            fill_color=color,
            fill_opacity=0.9 if is_old else 0.6,
            weight=1,
            popup=folium.Popup(popup_html, max_width=260),
        ).add_to(layer)

    def _add_diagnostic(self, layer: folium.FeatureGroup, d: DiagnosticRecord) -> None:
        color = ENERGY_CLASS_COLORS.get(d.energy_class, "#999999")
        failing = d.is_failing
        year = str(d.year_built) if d.year_built else "N/A"
        popup_html = f"""
        <div style="font-family: Arial, sans-serif; font-size: 12px; min-width: 180px;">
            <span style="background: {color}; color: white; padding: 2px 8px; border-radius: 4px;">
                {d.energy_class}
            </span>
            {"<strong style='color: #ef4444;'> Failing</strong>" if failing else ""}<br>
            Built: {year}<br>
            Type: {d.building_type or "N/A"}
        </div>
        """
        folium.CircleMarker(
            location=[d.latitude, d.longitude],
            radius=7 if failing else 5,
            color=color,
            fill=True,
            fill_color=color,
            fill_opacity=0.9 if failing else 0.5,
            weight=1,
            popup=folium.Popup(popup_html, max_width=240),
        ).add_to(layer)

    def _build_zone_popup(self, zone: CensusZone) -> str:
        """Build HTML popup content for a census zone."""
        return f"""
        <div style="font-family: Arial, sans-serif; font-size: 12px; min-width: 220px;">
            <h4 style="margin: 0 0 6px 0; color: {COLORS['census']};">IRIS {zone.name}</h4>
            <div style="color: #888; margin-bottom: 6px;">Code {zone.id} - census {zone.census_year}</div>
            <table style="width: 100%; border-collapse: collapse;">
                <tr><td>Dwellings:</td><td><strong>{zone.total_dwellings:,}</strong></td></tr>
                <tr><td>Primary residences:</td><td><strong>{zone.primary_residences:,}</strong> ({zone.primary_rate * 100:.0f}%)</td></tr>
                <tr><td>Secondary residences:</td><td><strong>{zone.secondary_residences:,}</strong> ({zone.secondary_rate * 100:.1f}%)</td></tr>
                <tr><td>Vacant dwellings:</td><td><strong>{zone.vacant_dwellings:,}</strong> ({zone.vacancy_rate * 100:.1f}%)</td></tr>
            </table>
        </div>
        """

    def _build_suspicion_popup(self, scored: ScoredCell) -> str:
        """Build HTML popup with the per-signal breakdown of a cell."""
        cell = scored.cell
        signals = scored.signals.to_dict()
        bars = "".join(
            f"<div>{label}</div>{self._signal_bar(signals[name], SIGNAL_CAPS[name], color)}"
            for name, (label, color) in SIGNAL_LABELS.items()
        )
        zone = f"IRIS {scored.zone_name}" if scored.zone_name else "Outside census zones"
        return f"""
        <div style="font-family: Arial, sans-serif; font-size: 12px; min-width: 240px;">
            <div style="font-weight: bold; color: {COLORS['suspicion']}; margin-bottom: 6px;">
                Suspicion zone - {scored.score}/100
            </div>
            <div style="font-size: 11px; margin-bottom: 8px;">
                {zone}<br>
                Old sales: {cell.old_transactions} | Recent: {cell.recent_transactions} |
                Failing: {cell.failing_diagnostics}/{cell.diagnostic_total}<br>
                Signal sum: {scored.signals.raw_total:.1f}
            </div>
            <div style="font-size: 11px;">{bars}</div>
        </div>
        """

    @staticmethod
    def _signal_bar(value: float, cap: float, color: str) -> str:
        width = value / cap * 100 if cap else 0
        return (
            '<div style="display: flex; align-items: center; gap: 6px; margin: 2px 0;">'
            f'<div style="width: 60px; font-size: 10px;">{value:.0f}/{cap:.0f}</div>'
            '<div style="flex: 1; height: 6px; background: #2a2e38; border-radius: 3px;">'
            f'<div style="width: {width:.0f}%; height: 100%; background: {color}; border-radius: 3px;"></div>'
            "</div></div>"
        )

    def _add_legend(self, m: folium.Map) -> None:
        """Add a legend to the map."""
        legend_html = f"""
        <div style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            z-index: 1000;
            background-color: white;
            padding: 10px;
            border: 2px solid gray;
            border-radius: 5px;
            font-family: Arial, sans-serif;
            font-size: 12px;
        ">
            <div style="font-weight: bold; margin-bottom: 5px;">Vacancy Suspicion</div>
            <div><span style="color: {COLORS['suspicion']};">&#9679;</span> Suspicion zone (size = score)</div>
            <div style="margin-top: 3px;"><span style="color: #ef4444;">&#9632;</span> IRIS vacancy &gt; 12%</div>
            <div style="margin-top: 3px;"><span style="color: #f59e0b;">&#9632;</span> IRIS vacancy &gt; 8%</div>
            <div style="margin-top: 3px;"><span style="color: #06b6d4;">&#9632;</span> IRIS vacancy &le; 8%</div>
            <div style="margin-top: 3px;"><span style="color: {COLORS['old_transactions']};">&#9679;</span> Sale older than 2 years</div>
        </div>
        """
        m.get_root().html.add_child(folium.Element(legend_html))


def generate_map(
    scored: Sequence[ScoredCell],
    zones: Sequence[CensusZone] = (),
    transactions: Sequence[TransactionRecord] = (),
    diagnostics: Sequence[DiagnosticRecord] = (),
    output_dir: Path | str = "deliverables",
    filename: str = "bouffay_vacancy_map.html",
    center: tuple[float, float] = DEFAULT_CENTER,
    now: Optional[date] = None,
) -> Path:
    """
    Convenience function to generate an interactive map.

    Args:
        scored: Suspicion cells
        zones: Census zones
        transactions: Sales layer
        diagnostics: Diagnostics layer
        output_dir: Output directory
        filename: Output filename
        center: Map center coordinates
        now: Reference date for old-sale highlighting

    Returns:
        Path to generated HTML file
    """
    generator = SuspicionMapGenerator(output_dir, center=center)
    return generator.generate(scored, zones, transactions, diagnostics, filename, now=now)
