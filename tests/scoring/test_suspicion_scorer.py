"""Tests for the grid suspicion scoring engine."""

import geopandas as gpd
import pytest

from vacancy_radar.acquisition import (
    CensusZone,
    generate_sample_diagnostics,
    generate_sample_transactions,
)
from vacancy_radar.scoring import (
    ScoringSettings,
    SuspicionScorer,
    compute_suspicion_zones,
    to_dataframe,
    to_geodataframe,
)


@pytest.fixture
def scorer() -> SuspicionScorer:
    return SuspicionScorer(settings=ScoringSettings())


class TestEndToEnd:
    def test_single_old_sale_without_diagnostics(self, make_transaction, bouffay_zones, now):
        """One 30-month-old sale, no DPE, inside Bouffay → probable vacancy."""
        result = compute_suspicion_zones([make_transaction(months_ago=30)], [], bouffay_zones, now=now)

        assert len(result) == 1
        cell = result[0]
        assert cell.key == (78690, -2589)
        assert cell.zone_id == "441090101"
        assert cell.signals.stagnation == 25
        assert cell.signals.invisibility == 10
        assert cell.signals.excess_vacancy == 0
        assert cell.score >= 35
        assert cell.score > 30

    def test_recent_sale_with_good_diagnostic_is_filtered(
        self, make_transaction, make_diagnostic, bouffay_zones, now
    ):
        result = compute_suspicion_zones(
            [make_transaction(months_ago=3)], [make_diagnostic("B")], bouffay_zones, now=now
        )
        assert result == []

    def test_empty_inputs(self, bouffay_zones, now):
        assert compute_suspicion_zones([], [], bouffay_zones, now=now) == []

    def test_no_zones(self, make_transaction, now):
        (cell,) = compute_suspicion_zones([make_transaction(months_ago=30)], [], [], now=now)
        assert cell.zone_id is None
        assert cell.signals.excess_vacancy == 0
        assert cell.score == 35


class TestScorer:
    def test_scores_every_cell_sorted_by_key(self, scorer, make_transaction, make_diagnostic, now, bouffay_zones):
        transactions = [
            make_transaction(months_ago=3, lat=47.2160, lon=-1.5580),
            make_transaction(months_ago=30, lat=47.2110, lon=-1.5480),
        ]
        diagnostics = [make_diagnostic("C", lat=47.2138, lon=-1.5535)]
        scored = scorer.score_cells(transactions, diagnostics, bouffay_zones, now=now)

        assert len(scored) == 3
        assert [s.key for s in scored] == sorted(s.key for s in scored)
        assert all(0 <= s.score <= 100 for s in scored)

    def test_idempotent(self, scorer, bouffay_zones, now):
        transactions = generate_sample_transactions(now=now, seed=1)
        diagnostics = generate_sample_diagnostics(seed=1)
        first = scorer.score_cells(transactions, diagnostics, bouffay_zones, now=now)
        second = scorer.score_cells(transactions, diagnostics, bouffay_zones, now=now)
        assert [s.to_dict() for s in first] == [s.to_dict() for s in second]

    def test_threshold_is_strict(self, scorer, make_transaction, now):
        # stagnation 25 + invisibility 10 = 35 without zones
        cells = [make_transaction(months_ago=30)]
        assert len(scorer.compute_suspicion_zones(cells, [], [], score_threshold=34, now=now)) == 1
        assert scorer.compute_suspicion_zones(cells, [], [], score_threshold=35, now=now) == []

    def test_count_probable(self, scorer, make_transaction, now):
        scored = scorer.score_cells(
            [
                make_transaction(months_ago=30, lat=47.2110, lon=-1.5480),
                make_transaction(months_ago=3, lat=47.2160, lon=-1.5580),
            ],
            [],
            [],
            now=now,
        )
        # old cell scores 35, recent cell 10 (invisibility only)
        assert sorted(s.score for s in scored) == [10, 35]
        assert scorer.count_probable(scored) == 1

    def test_cell_size_changes_grouping(self, make_transaction, now):
        transactions = [
            make_transaction(lat=47.2130, lon=-1.5530),
            make_transaction(lat=47.2140, lon=-1.5540),
        ]
        fine = SuspicionScorer(settings=ScoringSettings(cell_size=0.0006))
        coarse = SuspicionScorer(settings=ScoringSettings(cell_size=0.01))
        assert len(fine.score_cells(transactions, [], [], now=now)) == 2
        assert len(coarse.score_cells(transactions, [], [], now=now)) == 1


class TestZoneSensitivity:
    def _with_vacancy(self, zones: list[CensusZone], vacant: int, position: int = 0) -> list[CensusZone]:
        zones = list(zones)
        zones[position] = zones[position].model_copy(update={"vacant_dwellings": vacant})
        return zones

    def test_raising_zone_vacancy_raises_score(self, make_transaction, bouffay_zones, now):
        sales = [make_transaction(months_ago=30)]
        base = compute_suspicion_zones(sales, [], bouffay_zones, now=now)[0]
        raised = compute_suspicion_zones(sales, [], self._with_vacancy(bouffay_zones, 400), now=now)[0]
        assert raised.signals.excess_vacancy > 0
        assert raised.score > base.score

    def test_zone_below_baseline_contributes_nothing(self, make_transaction, bouffay_zones, now):
        sales = [make_transaction(months_ago=30)]
        lowered = compute_suspicion_zones(sales, [], self._with_vacancy(bouffay_zones, 50), now=now)[0]
        assert lowered.signals.excess_vacancy == 0

    def test_other_zone_below_baseline_stays_at_zero(self, make_transaction, bouffay_zones, now):
        """Bouffay sits below the zone mean; raising another zone only lifts the mean further."""
        sales = [make_transaction(months_ago=30)]
        base = compute_suspicion_zones(sales, [], bouffay_zones, now=now)[0]
        raised = compute_suspicion_zones(
            sales, [], self._with_vacancy(bouffay_zones, 400, position=2), now=now
        )[0]

        assert raised.zone_id == base.zone_id == "441090101"
        assert base.signals.excess_vacancy == raised.signals.excess_vacancy == 0
        assert raised.score == base.score

    def test_other_zone_above_baseline_shrinks(self, make_transaction, bouffay_zones, now):
        sales = [make_transaction(months_ago=30, lat=47.2165, lon=-1.5580)]
        base = compute_suspicion_zones(sales, [], bouffay_zones, now=now)[0]
        raised = compute_suspicion_zones(sales, [], self._with_vacancy(bouffay_zones, 400), now=now)[0]

        assert base.zone_id == "441090102"
        assert base.signals.excess_vacancy == pytest.approx(0.67, abs=0.01)
        assert raised.signals.excess_vacancy == 0


class TestConfig:
    def test_defaults_when_config_missing(self, tmp_path):
        scorer = SuspicionScorer(project_root=tmp_path)
        assert scorer.settings == ScoringSettings()
        assert scorer.config["thresholds"]["display"] == 15

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "scoring.yaml"
        path.write_text(
            "grid:\n  cell_size: 0.001\n"
            "thresholds:\n  display: 20\n  probable: 40\n"
            "zones:\n  overlap_policy: smallest_area\n",
            encoding="utf-8",
        )
        settings = SuspicionScorer(config_path=path).settings
        assert settings.cell_size == 0.001
        assert settings.display_threshold == 20
        assert settings.probable_threshold == 40
        assert settings.zone_overlap_policy == "smallest_area"
        assert settings.recency_months == 24

    def test_project_config(self):
        settings = SuspicionScorer().settings
        assert settings.cell_size == 0.0006
        assert settings.display_threshold == 15
        assert settings.probable_threshold == 30

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            ScoringSettings(cell_size=0)
        with pytest.raises(ValueError):
            ScoringSettings(zone_overlap_policy="largest")


class TestFrames:
    def test_dataframe_columns(self, scorer, make_transaction, bouffay_zones, now):
        scored = scorer.score_cells([make_transaction(months_ago=30)], [], bouffay_zones, now=now)
        df = to_dataframe(scored)
        assert len(df) == 1
        assert df.loc[0, "signal_stagnation"] == 25
        assert df.loc[0, "zone_id"] == "441090101"
        assert "signal_price_anomaly" in df.columns

    def test_geodataframe(self, scorer, make_transaction, now):
        scored = scorer.score_cells([make_transaction(months_ago=30)], [], [], now=now)
        gdf = to_geodataframe(scored)
        assert isinstance(gdf, gpd.GeoDataFrame)
        assert gdf.crs.to_epsg() == 4326
        assert gdf.geometry.iloc[0].x == pytest.approx(-1.5535)
        assert gdf.geometry.iloc[0].y == pytest.approx(47.2138)

    def test_empty_geodataframe(self):
        assert len(to_geodataframe([])) == 0
