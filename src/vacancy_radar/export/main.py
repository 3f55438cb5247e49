"""
Main script to generate the vacancy suspicion deliverables.

Loads census zones, fetches sales and diagnostics (falling back to
synthetic records when the open-data APIs are unreachable), scores the
grid and generates:
- Console summary of the pass
- Interactive HTML map
"""

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path

from vacancy_radar.acquisition import (
    TargetArea,
    dpe_source,
    dvf_source,
    load_all,
    load_census_zones,
)
from vacancy_radar.export.map_generator import generate_map
from vacancy_radar.processing import summarize
from vacancy_radar.scoring import SuspicionScorer, filter_by_score

logger = logging.getLogger(__name__)

project_root = Path(__file__).parent.parent.parent.parent


def main():
    """Generate the vacancy suspicion deliverables."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("\n" + "=" * 60)
    print("BOUFFAY VACANCY RADAR - DELIVERABLE GENERATION")
    print("=" * 60 + "\n")

    start_time = datetime.now()
    today = date.today()
    deliverables_dir = project_root / "deliverables"
    deliverables_dir.mkdir(parents=True, exist_ok=True)

    area = TargetArea()

    # Step 1: Load data
    print("Step 1: Loading sales, diagnostics and census zones...")
    print("-" * 40)

    sales = dvf_source(area, now=today)
    audits = dpe_source(area)
    transactions, diagnostics = asyncio.run(load_all(sales, audits))
    zones = load_census_zones(project_root=project_root)

    for source, records in ((sales, transactions), (audits, diagnostics)):
        origin = "synthetic fallback" if source.used_fallback else "open-data API"
        print(f"  {source.name}: {len(records)} records ({origin})")
        if source.last_error:
            print(f"    API error: {source.last_error}")
    print(f"  Census zones: {len(zones)}")

    # Step 2: Score the grid
    print("\nStep 2: Scoring grid cells...")
    print("-" * 40)

    scorer = SuspicionScorer(project_root=project_root)
    scored = scorer.score_cells(transactions, diagnostics, zones, now=today)
    suspicious = filter_by_score(scored, scorer.settings.display_threshold)
    probable = scorer.count_probable(scored)

    summary = summarize(
        transactions,
        diagnostics,
        zones,
        scored,
        now=today,
        recency_months=scorer.settings.recency_months,
        display_threshold=scorer.settings.display_threshold,
        probable_threshold=scorer.settings.probable_threshold,
    )

    print(f"\n  Sales: {summary.transaction_count} ({summary.old_transaction_count} older than "
          f"{scorer.settings.recency_months} months)")
    print(f"  Diagnostics: {summary.diagnostic_count} "
          f"({summary.failing_count} F/G, {summary.failing_ratio * 100:.0f}%)")

    print("\n  Energy class distribution:")
    for energy_class, count in summary.class_distribution.items():
        pct = count / summary.diagnostic_count * 100 if summary.diagnostic_count else 0
        bar = "#" * int(pct / 2)
        print(f"    Class {energy_class}: {count:4d} ({pct:5.1f}%) {bar}")

    if summary.census_vacancy_pct is not None:
        print(f"\n  Census vacancy: {summary.census_vacancy_pct:.1f}% | "
              f"secondary residences: {summary.census_secondary_pct:.1f}%")

    print(f"\n  Scored cells: {len(scored)}")
    print(f"  Suspicion zones (> {scorer.settings.display_threshold}): {len(suspicious)}")
    print(f"  Probable vacancy (> {scorer.settings.probable_threshold}): {probable}")

    # Step 3: Generate interactive map
    print("\nStep 3: Generating interactive HTML map...")
    print("-" * 40)

    map_path = generate_map(
        suspicious,
        zones=zones,
        transactions=transactions,
        diagnostics=diagnostics,
        output_dir=deliverables_dir,
        center=area.center,
        now=today,
    )
    print(f"  [OK] Interactive map: {map_path}")
    print(f"    - {len(suspicious)} suspicion circles (size = score)")
    print(f"    - {len(zones)} IRIS polygons colored by vacancy rate")
    print(f"    - Sales and diagnostics layers (toggle in layer control)")

    elapsed = datetime.now() - start_time
    print("\n" + "=" * 60)
    print("DELIVERABLE GENERATION COMPLETE")
    print("=" * 60)
    print(f"\nTotal time: {elapsed.total_seconds():.1f} seconds")
    if suspicious:
        top = max(suspicious, key=lambda s: s.score)
        print(f"  - Highest score: {top.score} at ({top.cell.latitude:.5f}, {top.cell.longitude:.5f})")


if __name__ == "__main__":
    main()
