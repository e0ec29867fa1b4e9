"""Life projection: baseline life expectancy + decayed behaviour impact, bounded.

Algorithm (per request):
    baseline  = age + remaining years from the mortality table
    remaining = max(1, baseline - age)
    decay     = exp(-0.02 * remaining / 2)
    impact    = daily_minutes * remaining * 365.25 * decay   (minutes)
              / (365.25 * 24 * 60)                          (years)
              * evidence_quality
    adjusted  = max(age + 1, min(120, baseline + impact))

The period diminishing factor used for display (see ``aggregate``) is
never applied here; projections always start from the daily rate.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from amped.domains.lifespan.domain_logic.aggregate import AggregateImpactEngine, ImpactSummary
from amped.domains.lifespan.domain_logic.constants import (
    DEFAULT_PROJECTION_CONSTANTS,
    ProjectionConstants,
)
from amped.domains.lifespan.domain_logic.models import HealthMetric, LifeProjection, UserProfile
from amped.domains.lifespan.domain_logic.mortality_table import (
    DEFAULT_MORTALITY_TABLE,
    MortalityTable,
)
from amped.domains.lifespan.domain_logic.optimal_metrics import optimal_metrics

logger = logging.getLogger(__name__)


def confidence_description(evidence_quality: float) -> str:
    """Qualitative label shown alongside every projection, however weak."""
    pct = int(max(0.0, min(1.0, evidence_quality)) * 100)
    if evidence_quality >= 0.8:
        label = "High confidence"
    elif evidence_quality >= 0.6:
        label = "Moderate confidence"
    elif evidence_quality >= 0.4:
        label = "Limited confidence"
    else:
        label = "Low confidence"
    return f"{label} ({pct}% evidence quality)"


def format_for_battery_display(projection: LifeProjection) -> tuple[float, str]:
    """Return ``(percentage, text)`` for the battery visualisation."""
    text = (
        f"{projection.remaining_years:.1f} years remaining "
        f"(projected total: {projection.adjusted_life_expectancy_years:.1f} years)"
    )
    return projection.battery_percentage, text


class LifeProjectionEngine:
    """Applies an aggregate daily impact to a demographic baseline.

    Never raises for data problems: absent age/sex are replaced with
    defaults (30, male) and flagged, out-of-range ages are clamped, and
    non-finite impacts are treated as zero.

    Usage::

        engine = LifeProjectionEngine()
        projection = engine.project(UserProfile(age=40, sex="male"), 20.0, 0.85)
    """

    def __init__(
        self,
        constants: ProjectionConstants | None = None,
        table: MortalityTable | None = None,
    ) -> None:
        self._constants = constants or DEFAULT_PROJECTION_CONSTANTS
        self._table = table or DEFAULT_MORTALITY_TABLE

    @property
    def constants(self) -> ProjectionConstants:
        return self._constants

    @property
    def table(self) -> MortalityTable:
        return self._table

    def resolve_demographics(self, profile: UserProfile) -> tuple[float, str, bool, bool]:
        """Return ``(age, sex, used_default_age, used_default_sex)``."""
        c = self._constants
        used_default_age = profile.age is None
        used_default_sex = profile.sex is None

        age = float(c.default_age if profile.age is None else profile.age)
        clamped = max(float(c.min_age), min(float(c.max_age), age))
        if clamped != age:
            logger.debug("Age %s outside [%s, %s]; clamped to %s", age, c.min_age, c.max_age, clamped)

        sex = c.default_sex if profile.sex is None else profile.sex
        if used_default_age or used_default_sex:
            logger.debug(
                "Profile missing data (age=%s, sex=%s); using defaults",
                profile.age,
                profile.sex,
            )
        return clamped, sex, used_default_age, used_default_sex

    def baseline_life_expectancy(self, profile: UserProfile) -> float:
        age, sex, _, _ = self.resolve_demographics(profile)
        return self._table.baseline_life_expectancy(age, sex)

    def confidence_interval(self, age: float) -> float:
        c = self._constants
        if c.widen_interval_with_age:
            return self._table.baseline_interval(age, c.base_interval_years)
        return c.base_interval_years

    def impact_years(self, daily_impact_minutes: float, remaining_years: float) -> float:
        """Total decayed impact over the remaining horizon, in years."""
        c = self._constants
        decay = math.exp(-c.behavior_decay_rate * remaining_years / 2.0)
        total_minutes = daily_impact_minutes * remaining_years * c.days_per_year * decay
        return total_minutes / (c.days_per_year * 24 * 60)

    def project(
        self,
        profile: UserProfile,
        daily_impact_minutes: float,
        evidence_quality: float,
    ) -> LifeProjection:
        c = self._constants
        age, sex, used_default_age, used_default_sex = self.resolve_demographics(profile)

        if not math.isfinite(daily_impact_minutes):
            logger.debug("Non-finite daily impact %r treated as 0", daily_impact_minutes)
            daily_impact_minutes = 0.0
        quality = evidence_quality if math.isfinite(evidence_quality) else 0.0
        quality = max(0.0, min(1.0, quality))

        baseline = self._table.baseline_life_expectancy(age, sex)
        remaining = max(c.min_remaining_years, baseline - age)
        adjusted_impact = self.impact_years(daily_impact_minutes, remaining) * quality
        projected = baseline + adjusted_impact
        # Lower bound wins when the two conflict (age >= max_age), so the
        # result can exceed max_age there: age 120 projects to 121.
        bounded = max(age + 1, min(c.max_age, projected))

        projection = LifeProjection(
            baseline_life_expectancy_years=baseline,
            adjusted_life_expectancy_years=bounded,
            current_age=age,
            confidence_percentage=quality,
            confidence_interval_years=self.confidence_interval(age),
            used_default_age=used_default_age,
            used_default_sex=used_default_sex,
            low_confidence=(
                used_default_age or used_default_sex or quality < c.low_confidence_threshold
            ),
        )
        logger.debug(
            "Projection: baseline %.2f -> %.2f years (daily %.2f min, quality %.2f)",
            baseline,
            bounded,
            daily_impact_minutes,
            quality,
        )
        return projection


@dataclass(frozen=True)
class ProjectionResult:
    """Everything one projection request produces."""

    summary: ImpactSummary
    projection: LifeProjection

    @property
    def confidence_description(self) -> str:
        return confidence_description(self.projection.confidence_percentage)


class LifeProjectionService:
    """Orchestrates metrics + profile -> impact summary -> projection.

    Collaborators are injected; nothing here is a process-wide singleton.

    Usage::

        service = LifeProjectionService()
        result = service.calculate(metrics, profile)
        result.projection.adjusted_life_expectancy_years
    """

    def __init__(
        self,
        aggregator: AggregateImpactEngine | None = None,
        engine: LifeProjectionEngine | None = None,
    ) -> None:
        self._aggregator = aggregator or AggregateImpactEngine()
        self._engine = engine or LifeProjectionEngine()

    @property
    def aggregator(self) -> AggregateImpactEngine:
        return self._aggregator

    @property
    def engine(self) -> LifeProjectionEngine:
        return self._engine

    def calculate(self, metrics: Iterable[HealthMetric], profile: UserProfile) -> ProjectionResult:
        summary = self._aggregator.calculate(metrics, profile)
        projection = self._engine.project(
            profile, summary.daily_impact_minutes, summary.evidence_quality
        )
        return ProjectionResult(summary=summary, projection=projection)

    def calculate_optimal(self, profile: UserProfile) -> ProjectionResult:
        """Projection if every metric sat at its recommended value."""
        return self.calculate(
            optimal_metrics(profile, self._aggregator.calculator.constants), profile
        )
