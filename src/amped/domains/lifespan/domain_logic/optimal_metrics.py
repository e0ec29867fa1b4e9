"""Ideal metric set for a profile, used for "potential" projections."""

from __future__ import annotations

from amped.domains.lifespan.domain_logic.constants import (
    DEFAULT_AGE,
    DEFAULT_IMPACT_CONSTANTS,
    ImpactConstants,
)
from amped.domains.lifespan.domain_logic.impact_calculator import vo2_excellent_threshold
from amped.domains.lifespan.domain_logic.models import HealthMetric, UserProfile

# Recommended daily values for metrics whose optimum does not depend on the profile.
OPTIMAL_VALUES: dict[str, float] = {
    "steps": 12000.0,
    "exercise_minutes": 45.0,
    "sleep_hours": 7.5,
    "resting_heart_rate": 55.0,
    "smoking_status": 10.0,
    "alcohol_consumption": 9.0,
    "stress_level": 2.0,
    "nutrition_quality": 9.0,
    "social_connections_quality": 8.0,
    "active_energy_burned": 600.0,
    "oxygen_saturation": 98.0,
}


def optimal_hrv(age: int) -> float:
    return max(50.0, 60.0 - (age - 30) * 0.5)


def optimal_metrics(
    profile: UserProfile, constants: ImpactConstants | None = None
) -> list[HealthMetric]:
    """One ``calculated`` metric per supported type at its recommended value."""
    c = constants or DEFAULT_IMPACT_CONSTANTS
    age = profile.age if profile.age is not None else DEFAULT_AGE

    values = dict(OPTIMAL_VALUES)
    values["heart_rate_variability"] = optimal_hrv(age)
    values["vo2_max"] = vo2_excellent_threshold(profile, c)
    values["body_mass"] = c.body_mass_reference_kg

    return [
        HealthMetric(type=metric_type, value=value, source="calculated")
        for metric_type, value in values.items()
    ]
