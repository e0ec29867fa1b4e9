"""Tests for ProjectionRepository and StoredProjection."""

from __future__ import annotations

import pytest

from amped.core.storage.models import StoredProjection
from amped.core.storage.repository import RepositoryError
from amped.domains.lifespan.domain_logic.models import HealthMetric, UserProfile
from amped.domains.lifespan.domain_logic.projection import LifeProjectionService


def _stored(projection_id: str, date: str, adjusted: float = 75.0, **kwargs) -> StoredProjection:
    values = dict(
        id=projection_id,
        calculation_date=date,
        current_age=40.0,
        baseline_life_expectancy=73.5,
        adjusted_life_expectancy=adjusted,
        confidence_percentage=0.8,
        confidence_interval_years=2.0,
        daily_impact_minutes=20.0,
        metric_count=2,
        top_contributor="steps",
    )
    values.update(kwargs)
    return StoredProjection(**values)


class TestSave:
    def test_save_and_get(self, projection_repository):
        projection_repository.save_projection(_stored("p1", "2026-03-01T00:00:00+00:00"))
        stored = projection_repository.get_projection("p1")
        assert stored is not None
        assert stored.adjusted_life_expectancy == 75.0
        assert stored.net_impact_years == pytest.approx(1.5)
        assert stored.created_at

    def test_booleans_round_trip(self, projection_repository):
        projection_repository.save_projection(
            _stored("p1", "2026-03-01", used_default_age=True, low_confidence=True)
        )
        stored = projection_repository.get_projection("p1")
        assert stored.used_default_age is True
        assert stored.used_default_sex is False
        assert stored.low_confidence is True

    def test_duplicate_id_rejected(self, projection_repository):
        projection_repository.save_projection(_stored("p1", "2026-03-01"))
        with pytest.raises(RepositoryError, match="already stored"):
            projection_repository.save_projection(_stored("p1", "2026-03-02"))

    def test_missing_returns_none(self, projection_repository):
        assert projection_repository.get_projection("nope") is None


class TestHistory:
    def test_newest_first(self, projection_repository):
        projection_repository.save_projection(_stored("old", "2026-01-01"))
        projection_repository.save_projection(_stored("new", "2026-03-01"))
        projection_repository.save_projection(_stored("mid", "2026-02-01"))
        assert [p.id for p in projection_repository.get_history()] == ["new", "mid", "old"]

    def test_filters_by_kind(self, projection_repository):
        projection_repository.save_projection(_stored("a", "2026-01-01"))
        projection_repository.save_projection(_stored("o", "2026-01-02", kind="optimal"))
        assert [p.id for p in projection_repository.get_history()] == ["a"]
        assert [p.id for p in projection_repository.get_history(kind="optimal")] == ["o"]
        assert len(projection_repository.get_history(kind=None)) == 2

    def test_filters_by_profile(self, projection_repository):
        projection_repository.save_projection(_stored("a", "2026-01-01", profile_id="u1"))
        projection_repository.save_projection(_stored("b", "2026-01-02", profile_id="u2"))
        assert [p.id for p in projection_repository.get_history(profile_id="u1")] == ["a"]

    def test_limit(self, projection_repository):
        for i in range(5):
            projection_repository.save_projection(_stored(f"p{i}", f"2026-01-0{i + 1}"))
        assert len(projection_repository.get_history(limit=2)) == 2


class TestCountAndDelete:
    def test_count(self, projection_repository):
        projection_repository.save_projection(_stored("a", "2026-01-01"))
        projection_repository.save_projection(_stored("o", "2026-01-02", kind="optimal"))
        assert projection_repository.count_projections() == 2
        assert projection_repository.count_projections(kind="optimal") == 1

    def test_delete_all(self, projection_repository):
        projection_repository.save_projection(_stored("a", "2026-01-01"))
        projection_repository.save_projection(_stored("b", "2026-01-02"))
        assert projection_repository.delete_all() == 2
        assert projection_repository.count_projections() == 0


class TestFromResult:
    def test_from_result_copies_numbers(self, projection_repository):
        profile = UserProfile(age=40, sex="male")
        result = LifeProjectionService().calculate(
            [HealthMetric(type="steps", value=12000)], profile
        )
        stored = StoredProjection.from_result(result, profile_id=profile.id)
        projection_repository.save_projection(stored)

        loaded = projection_repository.get_projection(result.projection.id)
        assert loaded.profile_id == profile.id
        assert loaded.daily_impact_minutes == pytest.approx(18.75)
        assert loaded.top_contributor == "steps"
        assert loaded.adjusted_life_expectancy == pytest.approx(
            result.projection.adjusted_life_expectancy_years
        )

    def test_as_dict(self):
        data = _stored("p1", "2026-01-01").as_dict()
        assert data["net_impact_years"] == 1.5
        assert data["kind"] == "actual"
