"""Tests for the ideal metric set used by optimal projections."""

from __future__ import annotations

import pytest

from amped.domains.lifespan.domain_logic.impact_calculator import MetricImpactCalculator
from amped.domains.lifespan.domain_logic.models import METRIC_TYPES, UserProfile
from amped.domains.lifespan.domain_logic.optimal_metrics import optimal_hrv, optimal_metrics


class TestOptimalMetrics:
    def test_one_calculated_metric_per_type(self, male_40):
        metrics = optimal_metrics(male_40)
        assert sorted(m.type for m in metrics) == sorted(METRIC_TYPES)
        assert all(m.source == "calculated" for m in metrics)

    def test_profile_dependent_values(self):
        by_type = {m.type: m.value for m in optimal_metrics(UserProfile(age=30, sex="female"))}
        assert by_type["vo2_max"] == pytest.approx(44.0)
        assert by_type["body_mass"] == pytest.approx(72.6)
        assert by_type["heart_rate_variability"] == pytest.approx(60.0)

    def test_hrv_target_declines_to_floor(self):
        assert optimal_hrv(50) == pytest.approx(50.0)
        assert optimal_hrv(80) == pytest.approx(50.0)

    def test_no_optimal_metric_is_harmful(self, male_40):
        calculator = MetricImpactCalculator()
        for metric in optimal_metrics(male_40):
            detail = calculator.calculate_impact(metric, male_40)
            assert detail.lifespan_impact_minutes >= 0, metric.type
