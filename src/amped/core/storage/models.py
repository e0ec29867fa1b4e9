"""Data models for the projection persistence layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from amped.domains.lifespan.domain_logic.projection import ProjectionResult


@dataclass
class StoredProjection:
    """A persisted projection result.

    Only computed numbers are stored; the metric readings that produced
    them stay with the ingestion collaborator.
    """

    id: str
    calculation_date: str  # ISO 8601
    current_age: float
    baseline_life_expectancy: float
    adjusted_life_expectancy: float
    confidence_percentage: float
    confidence_interval_years: float
    daily_impact_minutes: float
    metric_count: int = 0
    top_contributor: str | None = None
    profile_id: str | None = None
    used_default_age: bool = False
    used_default_sex: bool = False
    low_confidence: bool = False
    kind: str = "actual"  # 'actual' | 'optimal'
    created_at: str = ""

    @property
    def net_impact_years(self) -> float:
        return self.adjusted_life_expectancy - self.baseline_life_expectancy

    @classmethod
    def from_result(
        cls,
        result: ProjectionResult,
        *,
        profile_id: str | None = None,
        kind: str = "actual",
    ) -> StoredProjection:
        projection = result.projection
        return cls(
            id=projection.id,
            calculation_date=projection.calculation_date,
            current_age=projection.current_age,
            baseline_life_expectancy=projection.baseline_life_expectancy_years,
            adjusted_life_expectancy=projection.adjusted_life_expectancy_years,
            confidence_percentage=projection.confidence_percentage,
            confidence_interval_years=projection.confidence_interval_years,
            daily_impact_minutes=result.summary.daily_impact_minutes,
            metric_count=result.summary.metric_count,
            top_contributor=result.summary.top_contributor,
            profile_id=profile_id,
            used_default_age=projection.used_default_age,
            used_default_sex=projection.used_default_sex,
            low_confidence=projection.low_confidence,
            kind=kind,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "calculation_date": self.calculation_date,
            "kind": self.kind,
            "current_age": self.current_age,
            "baseline_life_expectancy_years": round(self.baseline_life_expectancy, 4),
            "adjusted_life_expectancy_years": round(self.adjusted_life_expectancy, 4),
            "net_impact_years": round(self.net_impact_years, 4),
            "daily_impact_minutes": round(self.daily_impact_minutes, 4),
            "confidence_percentage": round(self.confidence_percentage, 4),
            "metric_count": self.metric_count,
            "top_contributor": self.top_contributor,
            "low_confidence": self.low_confidence,
        }
