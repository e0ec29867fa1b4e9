"""Tests for domain dataclasses and the study reference catalogue."""

from __future__ import annotations

from amped.domains.lifespan.domain_logic.models import HealthMetric, MetricImpactDetail
from amped.domains.lifespan.domain_logic.study_references import (
    GENERAL_BASIS,
    get_study_reference,
    scientific_basis,
)


def _detail(minutes: float) -> MetricImpactDetail:
    return MetricImpactDetail(
        metric_type="steps",
        current_value=9000,
        baseline_value=8000,
        lifespan_impact_minutes=minutes,
        reliability_score=0.9,
        evidence_strength="strong",
        scientific_basis="x",
        recommendation="y",
    )


class TestHealthMetric:
    def test_unit_lookup(self):
        assert HealthMetric(type="vo2_max", value=45).unit == "mL/kg/min"
        assert HealthMetric(type="blood_glucose", value=95).unit == ""

    def test_defaults(self):
        metric = HealthMetric(type="steps", value=1)
        assert metric.source == "healthkit_synced"
        assert metric.date
        assert metric.id != HealthMetric(type="steps", value=1).id


class TestMetricImpactDetail:
    def test_comparison(self):
        assert _detail(1.0).comparison == "beneficial"
        assert _detail(-1.0).comparison == "harmful"
        assert _detail(0.0).comparison == "neutral"

    def test_as_dict_rounds_and_labels(self):
        data = _detail(1.234567).as_dict()
        assert data["lifespan_impact_minutes"] == 1.2346
        assert data["comparison"] == "beneficial"


class TestStudyReferences:
    def test_citation_format(self):
        assert get_study_reference("steps").citation == "Lee et al. (2019), JAMA Internal Medicine"

    def test_uncatalogued_metric_gets_general_basis(self):
        assert get_study_reference("oxygen_saturation") is None
        assert scientific_basis("oxygen_saturation") == GENERAL_BASIS
