"""Tests for impact aggregation and display-period scaling."""

from __future__ import annotations

import pytest

from amped.domains.lifespan.domain_logic.aggregate import (
    AggregateImpactEngine,
    ImpactSummary,
    diminishing_factor,
    scale_to_period,
)
from amped.domains.lifespan.domain_logic.models import HealthMetric, MetricImpactDetail, UserProfile


def _detail(metric_type: str, minutes: float, reliability: float) -> MetricImpactDetail:
    return MetricImpactDetail(
        metric_type=metric_type,
        current_value=0.0,
        baseline_value=0.0,
        lifespan_impact_minutes=minutes,
        reliability_score=reliability,
        evidence_strength="moderate",
        scientific_basis="test",
        recommendation="test",
    )


class TestAggregate:
    def test_sum_and_mean(self):
        daily, quality = AggregateImpactEngine.aggregate([
            _detail("steps", 18.75, 0.9),
            _detail("sleep_hours", 10.0, 0.85),
        ])
        assert daily == pytest.approx(28.75)
        assert quality == pytest.approx(0.875)

    def test_empty_is_zero(self):
        assert AggregateImpactEngine.aggregate([]) == (0.0, 0.0)

    def test_opposite_impacts_cancel(self):
        daily, _ = AggregateImpactEngine.aggregate([
            _detail("steps", 15.0, 0.9),
            _detail("resting_heart_rate", -15.0, 0.8),
        ])
        assert daily == pytest.approx(0.0)

    def test_single_metric(self):
        daily, quality = AggregateImpactEngine.aggregate([_detail("vo2_max", -25.0, 0.85)])
        assert daily == pytest.approx(-25.0)
        assert quality == pytest.approx(0.85)


class TestSummarize:
    def test_top_contributor_by_magnitude(self):
        summary = AggregateImpactEngine().summarize([
            _detail("steps", 18.75, 0.9),
            _detail("smoking_status", -348.3, 0.95),
            _detail("sleep_hours", 10.0, 0.85),
        ])
        assert summary.top_contributor == "smoking_status"
        assert summary.metric_count == 3

    def test_empty_has_no_top_contributor(self):
        summary = AggregateImpactEngine().summarize([])
        assert summary.top_contributor is None
        assert summary.metric_count == 0
        assert summary.details == ()

    def test_calculate_from_metrics(self):
        metrics = [
            HealthMetric(type="steps", value=12000),
            HealthMetric(type="sleep_hours", value=8),
        ]
        summary = AggregateImpactEngine().calculate(metrics, UserProfile(age=40, sex="male"))
        assert summary.daily_impact_minutes == pytest.approx(28.75)
        assert summary.evidence_quality == pytest.approx(0.875)
        assert summary.top_contributor == "steps"

    def test_unsupported_metric_dilutes_quality(self):
        metrics = [
            HealthMetric(type="steps", value=8000),
            HealthMetric(type="blood_glucose", value=95),
        ]
        summary = AggregateImpactEngine().calculate(metrics, UserProfile(age=40, sex="male"))
        assert summary.daily_impact_minutes == pytest.approx(15.0)
        assert summary.evidence_quality == pytest.approx(0.5)


class TestScaleToPeriod:
    def test_day_uses_short_factor(self):
        assert scale_to_period(10.0, "day") == pytest.approx(8.5)

    def test_month(self):
        assert scale_to_period(10.0, "month") == pytest.approx(10 * 30 * 0.85)

    def test_year_uses_long_factor(self):
        assert scale_to_period(10.0, "year") == pytest.approx(10 * 365 * 0.65)

    def test_diminishing_factor_boundary(self):
        assert diminishing_factor(30) == 0.85
        assert diminishing_factor(31) == 0.65

    def test_invalid_period(self):
        with pytest.raises(ValueError, match="period"):
            scale_to_period(10.0, "week")

    def test_summary_scaling_leaves_daily_rate_untouched(self):
        summary = ImpactSummary(daily_impact_minutes=20.0, evidence_quality=0.8, metric_count=1)
        data = summary.as_dict("year")
        assert data["period"] == "year"
        assert data["period_impact_minutes"] == pytest.approx(20 * 365 * 0.65)
        assert data["daily_impact_minutes"] == 20.0
        assert summary.daily_impact_minutes == 20.0

    def test_as_dict_without_period(self):
        data = ImpactSummary(daily_impact_minutes=1.0, evidence_quality=0.5, metric_count=1).as_dict()
        assert "period" not in data
