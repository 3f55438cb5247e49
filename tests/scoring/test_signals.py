"""Tests for the seven suspicion signals."""

import pytest

from vacancy_radar.processing.grid import GridCell
from vacancy_radar.scoring import SIGNAL_CAPS, combine_signals
from vacancy_radar.scoring.signals import (
    aging_decay_signal,
    excess_secondary_signal,
    excess_vacancy_signal,
    failing_ratio_signal,
    invisibility_signal,
    price_anomaly_signal,
    stagnation_signal,
)


def _cell(**counters) -> GridCell:
    return GridCell(key=(0, 0), latitude=47.2138, longitude=-1.5535, **counters)


class TestCaps:
    def test_caps_sum_to_one_hundred(self):
        assert sum(SIGNAL_CAPS.values()) == 100

    def test_worst_case_cell_reaches_max_score(self, make_square_zone):
        cell = _cell(
            old_transactions=3,
            old_buildings=2,
            old_failing_buildings=2,
            prices_per_area=[100.0],
        )
        zone = make_square_zone("z", 0, 0, 1, total=100, secondary=50, vacant=50)
        signals = combine_signals(
            stagnation=stagnation_signal(cell),
            failing_ratio=20.0,
            invisibility=invisibility_signal(cell),
            excess_vacancy=excess_vacancy_signal(zone, 0.1),
            excess_secondary=excess_secondary_signal(zone, 0.1),
            aging_decay=aging_decay_signal(cell),
            price_anomaly=price_anomaly_signal(cell, 4000.0),
        )
        assert signals.stagnation == 25
        assert signals.invisibility == 10
        assert signals.excess_vacancy == 20
        assert signals.excess_secondary == 10
        assert signals.aging_decay == 10
        assert signals.price_anomaly == pytest.approx(5 * 3900 / 4000)
        assert signals.score == 100


class TestStagnation:
    def test_only_old_sales(self):
        assert stagnation_signal(_cell(old_transactions=3)) == 25

    def test_mixed_sales_scaled_by_old_share(self):
        assert stagnation_signal(_cell(old_transactions=1, recent_transactions=3)) == pytest.approx(2.5)

    def test_no_old_sales(self):
        assert stagnation_signal(_cell(recent_transactions=4)) == 0
        assert stagnation_signal(_cell()) == 0


class TestDiagnosticSignals:
    def test_all_failing(self):
        assert failing_ratio_signal(_cell(diagnostic_total=2, failing_diagnostics=2)) == 20

    def test_failing_ratio(self):
        assert failing_ratio_signal(_cell(diagnostic_total=4, failing_diagnostics=2)) == pytest.approx(10.0)
        assert failing_ratio_signal(_cell(diagnostic_total=4)) == 0

    def test_invisibility_needs_sales_and_no_diagnostics(self):
        assert invisibility_signal(_cell(recent_transactions=1)) == 10
        assert invisibility_signal(_cell(recent_transactions=1, diagnostic_total=1)) == 0
        assert invisibility_signal(_cell(diagnostic_total=1)) == 0

    def test_aging_decay(self):
        assert aging_decay_signal(_cell(old_buildings=4, old_failing_buildings=1)) == pytest.approx(2.5)
        assert aging_decay_signal(_cell()) == 0


class TestCensusSignals:
    def test_excess_vacancy_relative_to_baseline(self, make_square_zone):
        zone = make_square_zone("z", 0, 0, 1, total=1000, vacant=150)
        assert excess_vacancy_signal(zone, 0.1) == pytest.approx(10.0)

    def test_below_baseline_is_zero(self, make_square_zone):
        zone = make_square_zone("z", 0, 0, 1, total=1000, vacant=50)
        assert excess_vacancy_signal(zone, 0.1) == 0

    def test_no_zone_or_baseline(self, make_square_zone):
        zone = make_square_zone("z", 0, 0, 1, total=1000, vacant=500)
        assert excess_vacancy_signal(None, 0.1) == 0
        assert excess_vacancy_signal(zone, None) == 0
        assert excess_vacancy_signal(zone, 0.0) == 0

    def test_excess_secondary(self, make_square_zone):
        zone = make_square_zone("z", 0, 0, 1, total=1000, secondary=80)
        assert excess_secondary_signal(zone, 0.05) == pytest.approx(6.0)


class TestPriceAnomaly:
    def test_below_seventy_percent(self):
        cell = _cell(prices_per_area=[2000.0])
        assert price_anomaly_signal(cell, 4000.0) == pytest.approx(2.5)

    def test_at_or_above_seventy_percent(self):
        assert price_anomaly_signal(_cell(prices_per_area=[2800.0]), 4000.0) == 0
        assert price_anomaly_signal(_cell(prices_per_area=[5000.0]), 4000.0) == 0

    def test_no_prices(self):
        assert price_anomaly_signal(_cell(), 4000.0) == 0


class TestCombine:
    def test_rounds_half_up(self):
        signals = combine_signals(12.5, 0, 0, 0, 0, 0, 0)
        assert signals.score == 13
        assert signals.raw_total == pytest.approx(12.5)

    def test_caps_at_one_hundred(self):
        assert combine_signals(25, 20, 10, 20, 10, 10, 5.4).score == 100
