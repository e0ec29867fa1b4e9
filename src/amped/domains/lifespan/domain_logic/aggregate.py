"""Aggregate per-metric impacts into one daily rate and an evidence score."""

from __future__ import annotations

import logging
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from amped.domains.lifespan.domain_logic.constants import (
    LONG_PERIOD_FACTOR,
    PERIOD_DAYS,
    SHORT_PERIOD_FACTOR,
    SHORT_PERIOD_MAX_DAYS,
)
from amped.domains.lifespan.domain_logic.impact_calculator import MetricImpactCalculator
from amped.domains.lifespan.domain_logic.models import (
    HealthMetric,
    MetricImpactDetail,
    UserProfile,
)

logger = logging.getLogger(__name__)

Period = Literal["day", "month", "year"]


def diminishing_factor(days: int) -> float:
    """Discount applied when extrapolating a daily rate over ``days``."""
    return SHORT_PERIOD_FACTOR if days <= SHORT_PERIOD_MAX_DAYS else LONG_PERIOD_FACTOR


def scale_to_period(daily_impact_minutes: float, period: Period | str) -> float:
    """Scale a daily impact to a display period (day/month/year).

    Display only: the result must never be fed back into a projection,
    which always works from the daily rate.

    Raises:
        ValueError: If ``period`` is not one of day, month, year.
    """
    try:
        days = PERIOD_DAYS[period]
    except KeyError:
        raise ValueError(
            f"period must be one of: {' | '.join(PERIOD_DAYS)} (got {period!r})"
        ) from None
    return daily_impact_minutes * days * diminishing_factor(days)


@dataclass(frozen=True)
class ImpactSummary:
    """Aggregated result across all metrics for one request."""

    daily_impact_minutes: float
    evidence_quality: float
    metric_count: int
    top_contributor: str | None = None
    details: tuple[MetricImpactDetail, ...] = field(default_factory=tuple)

    def scaled(self, period: Period | str) -> float:
        return scale_to_period(self.daily_impact_minutes, period)

    def as_dict(self, period: Period | str | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "daily_impact_minutes": round(self.daily_impact_minutes, 4),
            "evidence_quality": round(self.evidence_quality, 4),
            "metric_count": self.metric_count,
            "top_contributor": self.top_contributor,
            "metrics": [d.as_dict() for d in self.details],
        }
        if period is not None:
            data["period"] = period
            data["period_impact_minutes"] = round(self.scaled(period), 4)
        return data


class AggregateImpactEngine:
    """Sums per-metric daily impacts and averages their reliability.

    Each metric contributes independently (unweighted sum). Evidence
    quality is the arithmetic mean of reliability scores, 0 when empty.

    Usage::

        engine = AggregateImpactEngine()
        daily, quality = engine.aggregate(details)
        summary = engine.calculate(metrics, profile)
    """

    def __init__(self, calculator: MetricImpactCalculator | None = None) -> None:
        self._calculator = calculator or MetricImpactCalculator()

    @property
    def calculator(self) -> MetricImpactCalculator:
        return self._calculator

    @staticmethod
    def aggregate(impacts: Sequence[MetricImpactDetail]) -> tuple[float, float]:
        """Return ``(daily_impact_minutes, evidence_quality)``."""
        if not impacts:
            return 0.0, 0.0
        daily = sum(d.lifespan_impact_minutes for d in impacts)
        quality = statistics.fmean(d.reliability_score for d in impacts)
        return daily, max(0.0, min(1.0, quality))

    def summarize(self, impacts: Sequence[MetricImpactDetail]) -> ImpactSummary:
        daily, quality = self.aggregate(impacts)
        top = None
        if impacts:
            top = max(impacts, key=lambda d: abs(d.lifespan_impact_minutes)).metric_type
        return ImpactSummary(
            daily_impact_minutes=daily,
            evidence_quality=quality,
            metric_count=len(impacts),
            top_contributor=top,
            details=tuple(impacts),
        )

    def calculate(self, metrics: Iterable[HealthMetric], profile: UserProfile) -> ImpactSummary:
        """Run the calculator over every metric and aggregate the results."""
        details = self._calculator.calculate_all(metrics, profile)
        summary = self.summarize(details)
        logger.debug(
            "Aggregated %d metrics: %.2f min/day (evidence quality %.2f)",
            summary.metric_count,
            summary.daily_impact_minutes,
            summary.evidence_quality,
        )
        return summary
