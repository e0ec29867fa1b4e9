"""Deterministic per-metric impact formulas: metric reading -> daily lifespan minutes.

Each formula takes ``(value, profile, constants)`` and returns:
    (impact_minutes_per_day: float, details: dict)

``details`` always carries ``baseline`` (the value the reading was compared
against). Formulas are registered per metric type in a ``FormulaRegistry``;
``MetricImpactCalculator`` dispatches through it and turns unknown types
into a neutral result instead of failing.

All formulas are pure: no I/O, no randomness, no period scaling. Out of
range readings are clamped, never rejected.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from amped.domains.lifespan.domain_logic.constants import (
    DEFAULT_AGE,
    DEFAULT_IMPACT_CONSTANTS,
    ImpactConstants,
)
from amped.domains.lifespan.domain_logic.models import (
    EvidenceStrength,
    HealthMetric,
    MetricImpactDetail,
    UserProfile,
)
from amped.domains.lifespan.domain_logic.study_references import scientific_basis

logger = logging.getLogger(__name__)

Formula = Callable[[float, UserProfile, ImpactConstants], tuple[float, dict]]


def _clamp(value: float, lo: float, hi: float) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def _target_impact(
    value: float,
    target: float,
    base: float,
    *,
    max_multiplier: float,
    above_slope: float,
) -> float:
    """Shared above/below-target shape used by steps and exercise.

    At or above target the base impact is scaled up (capped); below target
    the multiplier shrinks linearly to zero and the base is subtracted, so
    a zero reading costs the full base.
    """
    if value >= target:
        multiplier = min(max_multiplier, 1 + (value - target) / target * above_slope)
        return base * multiplier
    multiplier = max(0.0, 1 - (target - value) / target)
    return base * multiplier - base


def _ordinal_impact(
    value: float,
    *,
    threshold: float,
    base: float,
    gain_ratio: float,
    loss_ratio: float,
    inverted: bool = False,
) -> float:
    """Map a 1-10 questionnaire answer to a fraction of ``base``.

    Scores at/above ``threshold`` earn up to ``base * gain_ratio`` at 10;
    scores below lose up to ``base * loss_ratio`` at 1. Inverted scales
    (10 = worst) are flipped before scoring.
    """
    score = _clamp(value, 1.0, 10.0)
    if inverted:
        score = 11.0 - score
    if score >= threshold:
        if threshold >= 10:
            return 0.0
        return base * gain_ratio * (score - threshold) / (10.0 - threshold)
    return -base * loss_ratio * (threshold - score) / (threshold - 1.0)


def _tier_value(score: float, tiers: tuple[tuple[float, float], ...]) -> float:
    """Value of the first tier (highest first) whose minimum the score reaches."""
    for min_score, tier_value in tiers:
        if score >= min_score:
            return tier_value
    return tiers[-1][1]


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------

def steps_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    steps = max(0.0, value)
    impact = _target_impact(
        steps,
        c.steps_target,
        c.steps_base_minutes,
        max_multiplier=c.steps_max_multiplier,
        above_slope=c.steps_above_slope,
    )
    return impact, {"baseline": c.steps_target, "value": steps}


def exercise_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    minutes = _clamp(value, 0.0, 1440.0)
    target = c.exercise_daily_target
    impact = _target_impact(
        minutes,
        target,
        c.exercise_base_minutes,
        max_multiplier=c.steps_max_multiplier,
        above_slope=c.steps_above_slope,
    )
    return impact, {"baseline": target, "value": minutes, "weekly_equivalent": minutes * 7}


def active_energy_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    kcal = _clamp(value, 0.0, 1300.0)
    diff = _clamp(kcal - c.energy_reference_kcal, -c.energy_max_difference, c.energy_max_difference)
    impact = diff / 100.0 * c.energy_minutes_per_100kcal
    return impact, {"baseline": c.energy_reference_kcal, "value": kcal}


def body_mass_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    """Symmetric penalty for distance from the reference body mass (kg)."""
    kg = _clamp(value, 36.0, 181.0)
    deviation = abs(kg - c.body_mass_reference_kg)
    impact = -(deviation / c.body_mass_step_kg) * c.body_mass_minutes_per_step
    return impact, {"baseline": c.body_mass_reference_kg, "value": kg}


def vo2_excellent_threshold(profile: UserProfile, c: ImpactConstants) -> float:
    """Age and sex adjusted VO2max (mL/kg/min) considered excellent."""
    age = profile.age if profile.age is not None else DEFAULT_AGE
    if profile.sex == "female":
        multiplier = c.vo2_female_multiplier
    elif profile.sex == "prefer_not_to_say":
        multiplier = c.vo2_unspecified_multiplier
    else:
        multiplier = 1.0
    decline = max(0, age - 30) * c.vo2_decline_per_year
    return max(c.vo2_excellent_at_30 * multiplier - decline, c.vo2_excellent_floor * multiplier)


def vo2_max_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    """Three-tier comparison against age/sex adjusted fitness norms.

    Tiers:
        excellent (>= excellent): base plus up to 50% bonus
        average (>= 0.8 * excellent): 0 .. base, linear
        below average: -base .. 0, linear from the floor (0.6 * excellent)
    """
    vo2 = _clamp(value, 10.0, 90.0)
    base = c.vo2_base_minutes
    excellent = vo2_excellent_threshold(profile, c)
    average = excellent * c.vo2_average_ratio
    floor = excellent * c.vo2_floor_ratio

    if vo2 >= excellent:
        tier = "excellent"
        impact = base * (1 + 0.5 * min(1.0, (vo2 - excellent) / (0.25 * excellent)))
    elif vo2 >= average:
        tier = "average"
        impact = base * (vo2 - average) / (excellent - average)
    else:
        tier = "below_average"
        position = max(0.0, (vo2 - floor) / (average - floor))
        impact = -base * (1 - position)

    return impact, {
        "baseline": round(excellent, 2),
        "value": vo2,
        "tier": tier,
        "average_threshold": round(average, 2),
    }


def oxygen_saturation_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    spo2 = _clamp(value, 80.0, 100.0)
    impact = (spo2 - c.spo2_reference_pct) / 2.0 * c.spo2_minutes_per_2pct
    return impact, {"baseline": c.spo2_reference_pct, "value": spo2}


# ---------------------------------------------------------------------------
# Cardiovascular & recovery
# ---------------------------------------------------------------------------

def sleep_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    hours = _clamp(value, 0.0, 24.0)
    base = c.sleep_base_minutes
    if c.sleep_min_optimal <= hours <= c.sleep_max_optimal:
        impact = base * (1 - abs(hours - c.sleep_ideal) / c.sleep_band_width)
        band = "optimal"
    elif hours < c.sleep_min_optimal:
        impact = -base * (1 - hours / c.sleep_min_optimal)
        band = "short"
    else:
        impact = -base * (hours - c.sleep_max_optimal) / c.sleep_oversleep_span
        band = "long"
    return impact, {"baseline": c.sleep_ideal, "value": hours, "band": band}


def resting_heart_rate_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    bpm = _clamp(value, 30.0, 220.0)
    base = c.rhr_base_minutes
    if bpm <= c.rhr_optimal:
        multiplier = min(
            c.rhr_max_multiplier,
            1 + (c.rhr_optimal - bpm) / 10.0 * c.rhr_bonus_per_10bpm,
        )
        impact = base * multiplier
    else:
        impact = -base * (bpm - c.rhr_optimal) / 10.0
    return impact, {"baseline": c.rhr_optimal, "value": bpm}


def hrv_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    ms = _clamp(value, 5.0, 150.0)
    diff = _clamp(ms - c.hrv_reference_ms, -c.hrv_max_difference, c.hrv_max_difference)
    impact = diff / 10.0 * c.hrv_minutes_per_10ms
    return impact, {"baseline": c.hrv_reference_ms, "value": ms}


# ---------------------------------------------------------------------------
# Lifestyle questionnaire scales (1-10)
# ---------------------------------------------------------------------------

def nutrition_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    impact = _ordinal_impact(
        value,
        threshold=c.nutrition_threshold,
        base=c.nutrition_base_minutes,
        gain_ratio=c.nutrition_gain_ratio,
        loss_ratio=c.nutrition_loss_ratio,
    )
    return impact, {"baseline": c.nutrition_threshold, "value": _clamp(value, 1.0, 10.0)}


def social_connections_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    impact = _ordinal_impact(
        value,
        threshold=c.social_threshold,
        base=c.social_base_minutes,
        gain_ratio=c.social_gain_ratio,
        loss_ratio=c.social_loss_ratio,
    )
    return impact, {"baseline": c.social_threshold, "value": _clamp(value, 1.0, 10.0)}


def stress_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    """Stress is reported 1 (calm) to 10 (overwhelmed); the scale is inverted."""
    impact = _ordinal_impact(
        value,
        threshold=c.stress_threshold,
        base=c.stress_base_minutes,
        gain_ratio=c.stress_gain_ratio,
        loss_ratio=c.stress_loss_ratio,
        inverted=True,
    )
    return impact, {"baseline": 11.0 - c.stress_threshold, "value": _clamp(value, 1.0, 10.0)}


def smoking_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    """10 = never smoked, 1 = daily smoker. Not smoking earns no bonus."""
    score = _clamp(value, 1.0, 10.0)
    impact = _tier_value(score, c.smoking_tiers)
    return impact, {"baseline": c.smoking_tiers[0][0], "value": score}


def alcohol_relative_risk(drinks_per_day: float, c: ImpactConstants) -> float:
    """Mortality relative risk: gentle up to one drink a day, steeper beyond."""
    drinks = _clamp(drinks_per_day, 0.0, c.alcohol_max_drinks)
    if drinks <= 1.0:
        return 1.0 + drinks * c.alcohol_rr_per_drink
    return 1.0 + c.alcohol_rr_per_drink + (drinks - 1.0) * c.alcohol_rr_per_excess_drink


def alcohol_impact(value: float, profile: UserProfile, c: ImpactConstants) -> tuple[float, dict]:
    """10 = never drinks, 1 = heavy daily drinking.

    The answer maps to drinks per day; the excess relative risk, scaled
    over a reference lifespan, is spread across the years remaining to it.
    """
    score = _clamp(value, 1.0, 10.0)
    drinks = _tier_value(score, c.alcohol_drink_tiers)
    risk = alcohol_relative_risk(drinks, c)
    age = profile.age if profile.age is not None else DEFAULT_AGE
    reference_years = c.alcohol_reference_lifespan_years
    lifetime_minutes = reference_years * 365.25 * 24 * 60 * (1.0 - risk) * c.alcohol_impact_scaling
    remaining_years = max(1.0, reference_years - age)
    impact = lifetime_minutes / (remaining_years * 365.25)
    return impact, {
        "baseline": c.alcohol_drink_tiers[0][0],
        "value": score,
        "drinks_per_day": drinks,
        "relative_risk": round(risk, 4),
    }


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

# metric type -> (when harmful, when beneficial or neutral)
_RECOMMENDATIONS: dict[str, tuple[str, str]] = {
    "steps": (
        "Aim for {gap:,.0f} more steps daily to reach {baseline:,.0f} steps.",
        "Great job! Keep walking at least {baseline:,.0f} steps a day.",
    ),
    "exercise_minutes": (
        "Build towards 150 minutes of moderate exercise per week, starting with 10-15 minutes a day.",
        "You meet WHO activity guidelines. Maintain this exercise routine.",
    ),
    "sleep_hours": (
        "Aim for {baseline:.0f} hours of sleep nightly and keep a consistent schedule.",
        "Your sleep duration is in the healthy range. Maintain good sleep hygiene.",
    ),
    "resting_heart_rate": (
        "Your resting heart rate is elevated. Regular cardio can lower it; "
        "consult your doctor if it stays above 90 bpm.",
        "Your resting heart rate is in a healthy range. Maintain your fitness level.",
    ),
    "heart_rate_variability": (
        "Stress reduction, better sleep and recovery between workouts can improve HRV.",
        "Your HRV shows good recovery capacity. Keep up your recovery practices.",
    ),
    "vo2_max": (
        "Improve cardiovascular fitness with regular aerobic exercise and interval training.",
        "Good cardiovascular fitness. Interval training can push it further.",
    ),
    "smoking_status": (
        "Quitting smoking is the single largest gain available. Ask about cessation support.",
        "Staying smoke-free protects your lifespan. Keep it up.",
    ),
    "alcohol_consumption": (
        "Reducing alcohol intake lowers mortality risk. Try adding alcohol-free days.",
        "Minimal alcohol consumption supports longevity.",
    ),
    "stress_level": (
        "Consider daily stress management such as breathing exercises, walks or talking to someone.",
        "Your stress appears well managed. Keep protecting time to recover.",
    ),
    "nutrition_quality": (
        "Add more vegetables, whole grains and legumes, and cut back on processed food.",
        "Your diet quality supports longevity. Keep it varied and mostly whole foods.",
    ),
    "social_connections_quality": (
        "Reach out to a friend or join a group; social ties are strongly linked to survival.",
        "Strong social connections are a real health asset. Keep nurturing them.",
    ),
    "body_mass": (
        "Gradual weight change towards a healthy range through diet and activity can help; "
        "consult a healthcare provider for personalised guidance.",
        "Your body mass is in a healthy range. Maintain it with balanced nutrition and exercise.",
    ),
    "active_energy_burned": (
        "Aim to burn {gap:,.0f} more active calories daily through movement.",
        "Good active energy level. Maintain it for ongoing benefits.",
    ),
    "oxygen_saturation": (
        "Low oxygen saturation detected. Consult a healthcare provider if it persists.",
        "Your oxygen saturation is healthy.",
    ),
}

_NEUTRAL_RECOMMENDATION = "No evidence-based guidance is available for this metric yet."


def build_recommendation(metric_type: str, value: float, baseline: float, impact: float) -> str:
    """Pick a harmful/beneficial message and fill in the gap to target."""
    templates = _RECOMMENDATIONS.get(metric_type)
    if templates is None:
        return _NEUTRAL_RECOMMENDATION
    template = templates[0] if impact < 0 else templates[1]
    return template.format(baseline=baseline, gap=max(0.0, baseline - value))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FormulaEntry:
    """A registered formula plus the evidence backing it."""

    formula: Formula
    evidence_strength: EvidenceStrength
    reliability: float


class FormulaRegistry:
    """Maps metric type -> formula function.

    Usage::

        registry = FormulaRegistry()
        registry.register("steps", steps_impact, evidence_strength="strong", reliability=0.9)
        entry = registry.get("steps")
    """

    def __init__(self) -> None:
        self._entries: dict[str, FormulaEntry] = {}

    def register(
        self,
        metric_type: str,
        formula: Formula,
        *,
        evidence_strength: EvidenceStrength,
        reliability: float,
    ) -> None:
        if not 0.0 <= reliability <= 1.0:
            raise ValueError(f"reliability must be in [0, 1], got {reliability!r}")
        if metric_type in self._entries:
            logger.warning("Replacing formula for metric type %s", metric_type)
        self._entries[metric_type] = FormulaEntry(formula, evidence_strength, reliability)

    def get(self, metric_type: str) -> FormulaEntry | None:
        return self._entries.get(metric_type)

    def metric_types(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, metric_type: object) -> bool:
        return metric_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def build_default_registry() -> FormulaRegistry:
    """Registry with every supported metric type."""
    registry = FormulaRegistry()
    registry.register("steps", steps_impact, evidence_strength="strong", reliability=0.90)
    registry.register("exercise_minutes", exercise_impact, evidence_strength="strong", reliability=0.90)
    registry.register("sleep_hours", sleep_impact, evidence_strength="strong", reliability=0.85)
    registry.register("resting_heart_rate", resting_heart_rate_impact, evidence_strength="moderate", reliability=0.80)
    registry.register("heart_rate_variability", hrv_impact, evidence_strength="moderate", reliability=0.65)
    registry.register("vo2_max", vo2_max_impact, evidence_strength="strong", reliability=0.85)
    registry.register("smoking_status", smoking_impact, evidence_strength="strong", reliability=0.95)
    registry.register("alcohol_consumption", alcohol_impact, evidence_strength="strong", reliability=0.85)
    registry.register("stress_level", stress_impact, evidence_strength="limited", reliability=0.50)
    registry.register("nutrition_quality", nutrition_impact, evidence_strength="moderate", reliability=0.70)
    registry.register(
        "social_connections_quality", social_connections_impact,
        evidence_strength="moderate", reliability=0.75,
    )
    registry.register("body_mass", body_mass_impact, evidence_strength="moderate", reliability=0.70)
    registry.register("active_energy_burned", active_energy_impact, evidence_strength="limited", reliability=0.55)
    registry.register("oxygen_saturation", oxygen_saturation_impact, evidence_strength="weak", reliability=0.40)
    return registry


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class MetricImpactCalculator:
    """Turns a single ``HealthMetric`` into a ``MetricImpactDetail``.

    Unsupported metric types and non-finite readings yield a neutral
    detail (impact 0, low reliability) rather than an error.

    Usage::

        calculator = MetricImpactCalculator()
        detail = calculator.calculate_impact(HealthMetric("steps", 12000), profile)
        detail.lifespan_impact_minutes   # 18.75
    """

    def __init__(
        self,
        constants: ImpactConstants | None = None,
        registry: FormulaRegistry | None = None,
    ) -> None:
        self._constants = constants or DEFAULT_IMPACT_CONSTANTS
        self._registry = registry or build_default_registry()

    @property
    def constants(self) -> ImpactConstants:
        return self._constants

    @property
    def registry(self) -> FormulaRegistry:
        return self._registry

    def calculate_impact(self, metric: HealthMetric, profile: UserProfile) -> MetricImpactDetail:
        entry = self._registry.get(metric.type)
        value = float(metric.value)

        if entry is None:
            logger.debug("No formula registered for metric type %r; returning neutral impact", metric.type)
            return self._neutral(metric.type, value)
        if not math.isfinite(value):
            logger.debug("Non-finite %s reading %r; returning neutral impact", metric.type, value)
            return self._neutral(metric.type, value)

        impact, details = entry.formula(value, profile, self._constants)
        baseline = float(details.get("baseline", 0.0))

        return MetricImpactDetail(
            metric_type=metric.type,
            current_value=value,
            baseline_value=baseline,
            lifespan_impact_minutes=impact,
            reliability_score=entry.reliability,
            evidence_strength=entry.evidence_strength,
            scientific_basis=scientific_basis(metric.type),
            recommendation=build_recommendation(metric.type, value, baseline, impact),
        )

    def calculate_all(
        self, metrics: Iterable[HealthMetric], profile: UserProfile
    ) -> list[MetricImpactDetail]:
        return [self.calculate_impact(m, profile) for m in metrics]

    def _neutral(self, metric_type: str, value: float) -> MetricImpactDetail:
        return MetricImpactDetail(
            metric_type=metric_type,
            current_value=value,
            baseline_value=0.0,
            lifespan_impact_minutes=0.0,
            reliability_score=self._constants.neutral_reliability,
            evidence_strength="weak",
            scientific_basis=scientific_basis(metric_type),
            recommendation=_NEUTRAL_RECOMMENDATION,
        )
