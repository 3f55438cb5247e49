"""Tests for the synthetic fallback records."""

from datetime import date

from vacancy_radar.acquisition import (
    ENERGY_CLASSES,
    TargetArea,
    generate_sample_diagnostics,
    generate_sample_transactions,
)
from vacancy_radar.acquisition.sample_data import BOUFFAY_STREETS


class TestSampleTransactions:
    def test_one_sale_per_street(self):
        sales = generate_sample_transactions(now=date(2025, 6, 1), seed=7)
        assert len(sales) == len(BOUFFAY_STREETS) == 18
        assert {s.street for s in sales} == {name for name, _, _ in BOUFFAY_STREETS}

    def test_value_ranges(self):
        for sale in generate_sample_transactions(now=date(2025, 6, 1), seed=1):
            assert 6 <= sale.months_ago <= 41
            assert 25 <= sale.surface_area <= 104
            assert 3200 <= sale.price_per_area <= 5699
            assert sale.nature_of_good in ("Appartement", "Maison")
            assert sale.transaction_date < date(2025, 6, 1)

    def test_jitter_stays_near_street(self):
        sales = generate_sample_transactions(seed=3)
        for sale, (_, lat, lon) in zip(sales, BOUFFAY_STREETS):
            assert abs(sale.latitude - lat) <= 0.0004
            assert abs(sale.longitude - lon) <= 0.0004

    def test_seed_is_reproducible(self):
        first = generate_sample_transactions(now=date(2025, 6, 1), seed=42)
        second = generate_sample_transactions(now=date(2025, 6, 1), seed=42)
        assert first == second


class TestSampleDiagnostics:
    def test_count_and_classes(self):
        diagnostics = generate_sample_diagnostics(seed=5, count=40)
        assert len(diagnostics) == 40
        assert all(d.energy_class in ENERGY_CLASSES for d in diagnostics)

    def test_build_years_follow_class(self):
        for d in generate_sample_diagnostics(seed=11):
            if d.energy_class >= "E":
                assert 1700 <= d.year_built < 1900
            else:
                assert 1950 <= d.year_built < 2020

    def test_positions_inside_area(self):
        area = TargetArea()
        box = area.get_bounding_box()
        assert all(box.contains(d.latitude, d.longitude) for d in generate_sample_diagnostics(area, seed=2))

    def test_seed_is_reproducible(self):
        assert generate_sample_diagnostics(seed=9) == generate_sample_diagnostics(seed=9)
