"""Formula constant overrides: reads YAML and applies it over the built-ins.

File format::

    impact:
      steps_target: 10000
      sleep_base_minutes: 12
      smoking_tiers:
        - [9, 0]
        - [5, -150]
        - [0, -348.3]
    projection:
      behavior_decay_rate: 0.03
      widen_interval_with_age: true

Precedence (lowest first): built-in defaults, settings, YAML file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, TypeVar

import yaml

from amped.core.config.settings import Settings
from amped.domains.lifespan.domain_logic.constants import (
    DEFAULT_IMPACT_CONSTANTS,
    DEFAULT_PROJECTION_CONSTANTS,
    POSITIVE_IMPACT_FIELDS,
    POSITIVE_PROJECTION_FIELDS,
    ImpactConstants,
    ProjectionConstants,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T", ImpactConstants, ProjectionConstants)


class ConstantsError(Exception):
    """Raised when a constants override file is missing or invalid."""


@dataclass(frozen=True)
class FormulaConstants:
    """The complete, resolved set of constants for one process."""

    impact: ImpactConstants = DEFAULT_IMPACT_CONSTANTS
    projection: ProjectionConstants = DEFAULT_PROJECTION_CONSTANTS


def _coerce_tiers(section: str, name: str, value: Any) -> tuple[tuple[float, float], ...]:
    """Coerce a YAML list of ``[min_score, value]`` pairs, highest tier first."""
    if not isinstance(value, list) or not value:
        raise ConstantsError(f"{section}.{name} must be a non-empty list of [min_score, value] pairs")
    tiers = []
    for pair in value:
        if (
            not isinstance(pair, list)
            or len(pair) != 2
            or any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in pair)
        ):
            raise ConstantsError(f"{section}.{name} entries must be [min_score, value] number pairs, got {pair!r}")
        tiers.append((float(pair[0]), float(pair[1])))
    return tuple(sorted(tiers, key=lambda tier: tier[0], reverse=True))


def _coerce(section: str, name: str, default: Any, value: Any) -> Any:
    """Coerce a YAML value to the type of the built-in default."""
    if isinstance(default, tuple):
        return _coerce_tiers(section, name, value)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConstantsError(f"{section}.{name} must be true or false, got {value!r}")
        return value
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConstantsError(f"{section}.{name} must be a number, got {value!r}")
        if isinstance(default, int):
            if value != int(value):
                raise ConstantsError(f"{section}.{name} must be a whole number, got {value!r}")
            return int(value)
        return float(value)
    if not isinstance(value, str):
        raise ConstantsError(f"{section}.{name} must be a string, got {value!r}")
    return value


def apply_overrides(base: _T, overrides: dict[str, Any] | None, section: str) -> _T:
    """Return a copy of ``base`` with validated ``overrides`` applied.

    Raises:
        ConstantsError: On unknown keys, values of the wrong type, or
            values the formulas cannot compute with.
    """
    if not overrides:
        return base
    if not isinstance(overrides, dict):
        raise ConstantsError(f"'{section}' must be a mapping of constant names to values")

    defaults = {f.name: getattr(base, f.name) for f in fields(base)}
    unknown = sorted(set(overrides) - set(defaults))
    if unknown:
        raise ConstantsError(f"Unknown {section} constants: {', '.join(unknown)}")

    coerced = {
        name: _coerce(section, name, defaults[name], value)
        for name, value in overrides.items()
    }
    result = replace(base, **coerced)
    _check_ranges(result, section)
    return result


def _check_ranges(constants: ImpactConstants | ProjectionConstants, section: str) -> None:
    if isinstance(constants, ImpactConstants):
        positive = POSITIVE_IMPACT_FIELDS
    else:
        positive = POSITIVE_PROJECTION_FIELDS
    bad = [name for name in positive if getattr(constants, name) <= 0]
    if bad:
        raise ConstantsError(f"{section} constants must be greater than zero: {', '.join(bad)}")

    if isinstance(constants, ImpactConstants):
        if not 0.0 <= constants.vo2_floor_ratio < constants.vo2_average_ratio < 1.0:
            raise ConstantsError(
                f"{section}.vo2_floor_ratio and vo2_average_ratio must satisfy "
                "0 <= floor < average < 1"
            )


def load_constants_file(
    path: str | Path, base: FormulaConstants | None = None
) -> FormulaConstants:
    """Parse a YAML overrides file on top of ``base`` (built-ins by default)."""
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConstantsError(f"Constants file does not exist: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConstantsError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConstantsError(f"{path} must contain a mapping at the top level")
    unknown_sections = sorted(set(data) - {"impact", "projection"})
    if unknown_sections:
        raise ConstantsError(f"Unknown sections in {path}: {', '.join(unknown_sections)}")

    base = base or FormulaConstants()
    constants = FormulaConstants(
        impact=apply_overrides(base.impact, data.get("impact"), "impact"),
        projection=apply_overrides(base.projection, data.get("projection"), "projection"),
    )
    logger.info(
        "Loaded formula constant overrides from %s (%d impact, %d projection)",
        path,
        len(data.get("impact") or {}),
        len(data.get("projection") or {}),
    )
    return constants


def load_constants(settings: Settings) -> FormulaConstants:
    """Resolve constants from settings and the optional overrides file."""
    constants = FormulaConstants(
        projection=replace(
            DEFAULT_PROJECTION_CONSTANTS,
            widen_interval_with_age=settings.widen_interval_with_age,
            behavior_decay_rate=settings.behavior_decay_rate,
        ),
    )
    if settings.constants_file:
        constants = load_constants_file(settings.constants_file, constants)
    return constants
