"""Static mortality and life-expectancy tables with bracketed interpolation.

Anchor points are decade ages (0, 10, ..., 90). Values between anchors are
linearly interpolated; values outside the table return the nearest anchor.
"""

from __future__ import annotations

import math

_ANCHOR_AGES = (0, 10, 20, 30, 40, 50, 60, 70, 80, 90)

# Annual deaths per 100,000
_MALE_MORTALITY = (4.5, 0.15, 0.75, 1.2, 2.0, 4.5, 11.0, 25.0, 60.0, 150.0)
_FEMALE_MORTALITY = (3.8, 0.12, 0.35, 0.7, 1.4, 3.0, 7.0, 17.0, 45.0, 130.0)

# Remaining years of life at each anchor age
_MALE_REMAINING = (71.4, 62.1, 52.3, 42.8, 33.5, 24.7, 16.8, 10.1, 5.5, 3.0)
_FEMALE_REMAINING = (76.8, 67.4, 57.5, 47.7, 38.1, 28.8, 20.1, 12.5, 6.8, 3.5)

PER_100K = 100_000.0
BASE_INTERVAL_YEARS = 2.0
_MIN_RATE_FOR_ADJUSTMENT = 0.001


def interpolate(anchors: tuple[tuple[float, float], ...], x: float) -> float:
    """Linear interpolation over sorted ``(key, value)`` anchors.

    Exact anchor hits return the anchor value; inputs below the first or
    at/above the last anchor return that anchor's value.
    """
    if not anchors:
        return 0.0
    if x <= anchors[0][0]:
        return anchors[0][1]
    if x >= anchors[-1][0]:
        return anchors[-1][1]

    for (lo_key, lo_val), (hi_key, hi_val) in zip(anchors, anchors[1:]):
        if x == lo_key:
            return lo_val
        if lo_key < x < hi_key:
            fraction = (x - lo_key) / (hi_key - lo_key)
            return lo_val + fraction * (hi_val - lo_val)

    return anchors[-1][1]


class MortalityTable:
    """Sex-keyed lookup tables for mortality rate and life expectancy.

    Instances are read-only after construction and safe to share across
    concurrent calculations.

    Usage::

        table = MortalityTable()
        table.baseline_life_expectancy(40, "male")    # 73.5
        table.annual_mortality_rate(45, "female")     # 0.000022
    """

    def __init__(
        self,
        *,
        mortality: dict[str, tuple[tuple[float, float], ...]] | None = None,
        remaining: dict[str, tuple[tuple[float, float], ...]] | None = None,
    ) -> None:
        self._mortality = mortality or {
            "male": tuple(zip(_ANCHOR_AGES, _MALE_MORTALITY)),
            "female": tuple(zip(_ANCHOR_AGES, _FEMALE_MORTALITY)),
        }
        self._remaining = remaining or {
            "male": tuple(zip(_ANCHOR_AGES, _MALE_REMAINING)),
            "female": tuple(zip(_ANCHOR_AGES, _FEMALE_REMAINING)),
        }

    @staticmethod
    def _table_key(sex: str | None) -> str:
        # Only an explicit "male" selects the male table.
        return "male" if sex == "male" else "female"

    def remaining_life_expectancy(self, age: float, sex: str | None) -> float:
        """Expected remaining years of life at ``age``."""
        return interpolate(self._remaining[self._table_key(sex)], age)

    def baseline_life_expectancy(self, age: float, sex: str | None) -> float:
        """Total expected lifespan (age + remaining years) for the cohort."""
        return age + self.remaining_life_expectancy(age, sex)

    def mortality_per_100k(self, age: float, sex: str | None) -> float:
        return interpolate(self._mortality[self._table_key(sex)], age)

    def annual_mortality_rate(self, age: float, sex: str | None) -> float:
        """Annual probability of death in [0, 1]."""
        return max(0.0, min(1.0, self.mortality_per_100k(age, sex) / PER_100K))

    def mortality_adjustment_factor(self, age: float, sex: str | None) -> float:
        """Relative weight of a behaviour change given cohort mortality.

        Lower baseline mortality means more years over which a habit pays
        off, so the factor shrinks as mortality rises.
        """
        rate = self.annual_mortality_rate(age, sex)
        return math.sqrt(_MIN_RATE_FOR_ADJUSTMENT / max(rate, _MIN_RATE_FOR_ADJUSTMENT))

    @staticmethod
    def baseline_interval(age: float, base: float = BASE_INTERVAL_YEARS) -> float:
        """Confidence interval that widens with age."""
        return base * (1 + age / 100)


DEFAULT_MORTALITY_TABLE = MortalityTable()
