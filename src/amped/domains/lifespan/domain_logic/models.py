"""Lifespan domain models: profiles, metric readings, impact details, projections."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Domain vocabularies
# ---------------------------------------------------------------------------

Sex = Literal["male", "female", "prefer_not_to_say"]
MetricSource = Literal["healthkit_synced", "user_input", "calculated"]
EvidenceStrength = Literal["strong", "moderate", "limited", "weak"]
Comparison = Literal["beneficial", "harmful", "neutral"]

MetricType = Literal[
    "steps",
    "exercise_minutes",
    "sleep_hours",
    "resting_heart_rate",
    "heart_rate_variability",
    "vo2_max",
    "smoking_status",
    "alcohol_consumption",
    "stress_level",
    "nutrition_quality",
    "social_connections_quality",
    "body_mass",
    "active_energy_burned",
    "oxygen_saturation",
]

SEXES: tuple[str, ...] = ("male", "female", "prefer_not_to_say")
METRIC_SOURCES: tuple[str, ...] = ("healthkit_synced", "user_input", "calculated")

METRIC_TYPES: tuple[str, ...] = (
    "steps",
    "exercise_minutes",
    "sleep_hours",
    "resting_heart_rate",
    "heart_rate_variability",
    "vo2_max",
    "smoking_status",
    "alcohol_consumption",
    "stress_level",
    "nutrition_quality",
    "social_connections_quality",
    "body_mass",
    "active_energy_burned",
    "oxygen_saturation",
)

# Questionnaire-backed metrics use a 1-10 scale (10 = healthiest answer,
# except stress where 10 = most stressed).
ORDINAL_METRIC_TYPES: tuple[str, ...] = (
    "smoking_status",
    "alcohol_consumption",
    "stress_level",
    "nutrition_quality",
    "social_connections_quality",
)

METRIC_UNITS: dict[str, str] = {
    "steps": "steps",
    "exercise_minutes": "min",
    "sleep_hours": "hr",
    "resting_heart_rate": "bpm",
    "heart_rate_variability": "ms",
    "vo2_max": "mL/kg/min",
    "smoking_status": "scale",
    "alcohol_consumption": "scale",
    "stress_level": "scale",
    "nutrition_quality": "scale",
    "social_connections_quality": "scale",
    "body_mass": "kg",
    "active_energy_burned": "kcal",
    "oxygen_saturation": "%",
}

MINUTES_PER_YEAR = 365.25 * 24 * 60


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserProfile:
    """Demographic snapshot consumed by every calculation.

    ``age`` and ``sex`` are optional; calculators substitute documented
    defaults (30, male) rather than failing.
    """

    age: int | None = None
    sex: Sex | None = None
    id: str = field(default_factory=_new_id)
    has_completed_onboarding: bool = False
    has_completed_questionnaire: bool = False


@dataclass(frozen=True)
class HealthMetric:
    """One observation of a health metric.

    ``type`` is a plain string so unrecognised types from upstream
    collaborators still flow through and are neutralised downstream.
    """

    type: str
    value: float
    date: str = field(default_factory=_now_iso)  # ISO 8601
    source: MetricSource = "healthkit_synced"
    id: str = field(default_factory=_new_id)
    impact_detail: MetricImpactDetail | None = None

    @property
    def unit(self) -> str:
        return METRIC_UNITS.get(self.type, "")

    def with_impact(self, detail: MetricImpactDetail) -> HealthMetric:
        """Return a copy carrying a cached impact detail for display."""
        return replace(self, impact_detail=detail)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricImpactDetail:
    """Per-metric calculator output.

    ``lifespan_impact_minutes`` is always a per-day rate. Period scaling
    happens in the aggregation layer and never lands here.
    """

    metric_type: str
    current_value: float
    baseline_value: float
    lifespan_impact_minutes: float
    reliability_score: float
    evidence_strength: EvidenceStrength
    scientific_basis: str
    recommendation: str

    @property
    def comparison(self) -> Comparison:
        if self.lifespan_impact_minutes > 0:
            return "beneficial"
        if self.lifespan_impact_minutes < 0:
            return "harmful"
        return "neutral"

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["lifespan_impact_minutes"] = round(self.lifespan_impact_minutes, 4)
        data["comparison"] = self.comparison
        return data


@dataclass(frozen=True)
class LifeProjection:
    """Final projection result; superseded, never mutated, by the next one."""

    baseline_life_expectancy_years: float
    adjusted_life_expectancy_years: float
    current_age: float
    confidence_percentage: float
    confidence_interval_years: float
    id: str = field(default_factory=_new_id)
    calculation_date: str = field(default_factory=_now_iso)
    used_default_age: bool = False
    used_default_sex: bool = False
    low_confidence: bool = False

    # ---------------------------------------------------------------
    # Derived display values
    # ---------------------------------------------------------------

    @property
    def net_impact_years(self) -> float:
        return self.adjusted_life_expectancy_years - self.baseline_life_expectancy_years

    @property
    def net_impact_days(self) -> float:
        return self.net_impact_years * 365.25

    @property
    def lower_bound_years(self) -> float:
        return self.adjusted_life_expectancy_years - self.confidence_interval_years / 2

    @property
    def upper_bound_years(self) -> float:
        return self.adjusted_life_expectancy_years + self.confidence_interval_years / 2

    @property
    def percentage_change(self) -> float:
        if self.baseline_life_expectancy_years <= 0:
            return 0.0
        return self.net_impact_years / self.baseline_life_expectancy_years * 100

    @property
    def remaining_years(self) -> float:
        return max(0.0, self.adjusted_life_expectancy_years - self.current_age)

    @property
    def battery_percentage(self) -> float:
        """Remaining years as a 0-100 charge level (60 years = full)."""
        return max(0.0, min(100.0, self.remaining_years / 60.0 * 100.0))

    @property
    def interpretation(self) -> str:
        net = self.net_impact_years
        if net >= 5:
            return "Significant positive impact"
        if net >= 2:
            return "Moderate positive impact"
        if net >= 0.5:
            return "Small positive impact"
        if net >= -0.5:
            return "Minimal impact"
        if net >= -2:
            return "Small negative impact"
        if net >= -5:
            return "Moderate negative impact"
        return "Significant negative impact"

    @property
    def formatted_net_impact(self) -> str:
        net = self.net_impact_years
        if abs(net) < 1:
            return f"{self.net_impact_days:+.0f} days"
        return f"{net:+.1f} years"

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "calculation_date": self.calculation_date,
            "current_age": self.current_age,
            "baseline_life_expectancy_years": round(self.baseline_life_expectancy_years, 4),
            "adjusted_life_expectancy_years": round(self.adjusted_life_expectancy_years, 4),
            "net_impact_years": round(self.net_impact_years, 4),
            "formatted_net_impact": self.formatted_net_impact,
            "interpretation": self.interpretation,
            "confidence_percentage": round(self.confidence_percentage, 4),
            "confidence_interval_years": round(self.confidence_interval_years, 4),
            "lower_bound_years": round(self.lower_bound_years, 4),
            "upper_bound_years": round(self.upper_bound_years, 4),
            "battery_percentage": round(self.battery_percentage, 2),
            "used_default_age": self.used_default_age,
            "used_default_sex": self.used_default_sex,
            "low_confidence": self.low_confidence,
        }
