"""Named, overridable formula constants for the lifespan engine.

Every target, threshold and scale used by the impact formulas and the
projection engine lives here so it can be audited and overridden (see
``amped.core.config.constants_loader``) instead of being buried in code.
"""

from __future__ import annotations

from dataclasses import dataclass


# Substituted when a profile omits age or sex.
DEFAULT_AGE = 30
DEFAULT_SEX = "male"


@dataclass(frozen=True)
class ImpactConstants:
    """Per-metric targets and base impacts (daily minutes)."""

    # Steps (Lee et al. 2019 / Saint-Maurice 2020)
    steps_target: float = 8000.0
    steps_base_minutes: float = 15.0
    steps_max_multiplier: float = 1.5
    steps_above_slope: float = 0.5

    # Exercise (WHO: 150 min/week)
    exercise_weekly_target: float = 150.0
    exercise_base_minutes: float = 20.0

    # Sleep (Cappuccio 2010)
    sleep_min_optimal: float = 7.0
    sleep_max_optimal: float = 9.0
    sleep_ideal: float = 8.0
    sleep_band_width: float = 2.0
    sleep_oversleep_span: float = 4.0
    sleep_base_minutes: float = 10.0

    # Resting heart rate (Zhang 2016)
    rhr_optimal: float = 60.0
    rhr_base_minutes: float = 10.0
    rhr_bonus_per_10bpm: float = 0.1
    rhr_max_multiplier: float = 1.5

    # VO2 max (Kodama 2009 / Mandsager 2018)
    vo2_base_minutes: float = 25.0
    vo2_excellent_at_30: float = 50.0
    vo2_excellent_floor: float = 35.0
    vo2_decline_per_year: float = 0.3
    vo2_average_ratio: float = 0.8
    vo2_floor_ratio: float = 0.6
    vo2_female_multiplier: float = 0.88
    vo2_unspecified_multiplier: float = 0.94

    # Heart rate variability (Evans 2013)
    hrv_reference_ms: float = 40.0
    hrv_max_difference: float = 70.0
    hrv_minutes_per_10ms: float = 17.4

    # Active energy
    energy_reference_kcal: float = 400.0
    energy_max_difference: float = 900.0
    energy_minutes_per_100kcal: float = 17.4

    # Oxygen saturation
    spo2_reference_pct: float = 98.0
    spo2_minutes_per_2pct: float = 8.7

    # Body mass
    body_mass_reference_kg: float = 72.6
    body_mass_step_kg: float = 9.07
    body_mass_minutes_per_step: float = 17.4

    # Ordinal questionnaire scales: (threshold, base, gain_ratio, loss_ratio)
    nutrition_threshold: float = 7.0
    nutrition_base_minutes: float = 139.0
    nutrition_gain_ratio: float = 0.48
    nutrition_loss_ratio: float = 1.0

    social_threshold: float = 6.0
    social_base_minutes: float = 52.0
    social_gain_ratio: float = 1.0
    social_loss_ratio: float = 1.0

    stress_threshold: float = 8.0
    stress_base_minutes: float = 60.0
    stress_gain_ratio: float = 0.25
    stress_loss_ratio: float = 1.0

    # Tiered scales: ((lowest score in tier, tier value), ...), highest tier first.
    # Smoking: never, former, occasional, daily -> minutes per day.
    smoking_tiers: tuple[tuple[float, float], ...] = (
        (9.0, 0.0),
        (6.0, -116.1),
        (2.0, -232.2),
        (0.0, -348.3),
    )

    # Alcohol: never, occasionally, several times a week, daily -> drinks per day.
    alcohol_drink_tiers: tuple[tuple[float, float], ...] = (
        (9.0, 0.0),
        (7.0, 0.5),
        (3.0, 1.0),
        (0.0, 2.0),
    )
    alcohol_max_drinks: float = 5.0
    alcohol_rr_per_drink: float = 0.05
    alcohol_rr_per_excess_drink: float = 0.15
    alcohol_impact_scaling: float = 0.08
    alcohol_reference_lifespan_years: float = 78.0

    # Unsupported metric types
    neutral_reliability: float = 0.1

    @property
    def exercise_daily_target(self) -> float:
        return self.exercise_weekly_target / 7.0


@dataclass(frozen=True)
class ProjectionConstants:
    """Constants for the baseline and projection stages."""

    default_age: int = DEFAULT_AGE
    default_sex: str = DEFAULT_SEX
    min_age: int = 0
    max_age: float = 120.0
    min_remaining_years: float = 1.0
    behavior_decay_rate: float = 0.02
    days_per_year: float = 365.25
    base_interval_years: float = 2.0
    widen_interval_with_age: bool = False
    low_confidence_threshold: float = 0.4


# Display periods and their diminishing-returns factors.
PERIOD_DAYS: dict[str, int] = {"day": 1, "month": 30, "year": 365}
SHORT_PERIOD_MAX_DAYS = 30
SHORT_PERIOD_FACTOR = 0.85
LONG_PERIOD_FACTOR = 0.65

# Fields used as divisors; overrides must keep them positive.
POSITIVE_IMPACT_FIELDS = (
    "steps_target",
    "exercise_weekly_target",
    "sleep_min_optimal",
    "sleep_band_width",
    "sleep_oversleep_span",
    "vo2_excellent_at_30",
    "vo2_excellent_floor",
    "body_mass_step_kg",
    "alcohol_reference_lifespan_years",
)
POSITIVE_PROJECTION_FIELDS = ("days_per_year",)

DEFAULT_IMPACT_CONSTANTS = ImpactConstants()
DEFAULT_PROJECTION_CONSTANTS = ProjectionConstants()
