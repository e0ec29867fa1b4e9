"""MCP tools for per-metric impact, aggregation and life projection."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from amped.core.audit.logger import AuditLogger
    from amped.core.storage.repository import ProjectionRepository

from amped.core.storage.models import StoredProjection
from amped.domains.lifespan.domain_logic.constants import PERIOD_DAYS
from amped.domains.lifespan.domain_logic.models import (
    METRIC_SOURCES,
    SEXES,
    HealthMetric,
    UserProfile,
)
from amped.domains.lifespan.domain_logic.projection import (
    LifeProjectionService,
    ProjectionResult,
    confidence_description,
    format_for_battery_display,
)

logger = logging.getLogger(__name__)

_DISCLAIMER = (
    "Estimates come from simple literature-cited formulas, not a medical "
    "assessment. Consult a healthcare provider for personal advice."
)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _validate_sex(value: str | None) -> str | None:
    if value in (None, ""):
        return None
    if value not in SEXES:
        raise ValueError(f"sex must be one of: {' | '.join(SEXES)}")
    return value


def _validate_age(value: int | None) -> int | None:
    if value is None:
        return None
    if value < 0:
        raise ValueError("age must be zero or positive")
    return value


def _validate_period(value: str | None) -> str:
    if value in (None, ""):
        return "day"
    if value not in PERIOD_DAYS:
        raise ValueError(f"period must be one of: {' | '.join(PERIOD_DAYS)}")
    return value


def _parse_metrics(raw: list[dict[str, Any]]) -> list[HealthMetric]:
    """Turn tool input dicts into HealthMetric objects.

    Unknown metric types are kept (they aggregate as neutral); structurally
    broken entries are rejected.
    """
    metrics: list[HealthMetric] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"metrics[{i}] must be an object with 'type' and 'value'")
        metric_type = str(item.get("type") or "").strip()
        if not metric_type:
            raise ValueError(f"metrics[{i}].type is required")
        try:
            value = float(item["value"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"metrics[{i}].value must be a number") from None
        source = item.get("source") or "healthkit_synced"
        if source not in METRIC_SOURCES:
            raise ValueError(f"metrics[{i}].source must be one of: {' | '.join(METRIC_SOURCES)}")

        kwargs: dict[str, Any] = {"type": metric_type, "value": value, "source": source}
        if item.get("date"):
            kwargs["date"] = str(item["date"])
        metrics.append(HealthMetric(**kwargs))
    return metrics


def _profile(age: int | None, sex: str | None) -> UserProfile:
    return UserProfile(age=_validate_age(age), sex=_validate_sex(sex))  # type: ignore[arg-type]


def _projection_payload(
    result: ProjectionResult,
    period: str,
    service: LifeProjectionService,
    profile: UserProfile,
) -> dict[str, Any]:
    percentage, battery_text = format_for_battery_display(result.projection)
    age, sex, _, _ = service.engine.resolve_demographics(profile)
    table = service.engine.table
    return {
        "status": "ok",
        "projection": result.projection.as_dict(),
        "confidence": confidence_description(result.projection.confidence_percentage),
        "battery": {"percentage": round(percentage, 2), "display_text": battery_text},
        "impact": result.summary.as_dict(period),
        # Informational only; never reweights the projection.
        "cohort": {
            "annual_mortality_rate": table.annual_mortality_rate(age, sex),
            "mortality_adjustment_factor": round(table.mortality_adjustment_factor(age, sex), 4),
        },
        "disclaimer": _DISCLAIMER,
    }


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_lifespan_tools(
    mcp: FastMCP,
    service: LifeProjectionService,
    repository: ProjectionRepository | None = None,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register impact and projection tools on the MCP server.

    When a repository is provided, projections are persisted (numbers only)
    so trend tools can use them.
    """

    def _audit(tool_name: str, tool_input: dict[str, Any], start: float, exc: Exception | None = None) -> None:
        if audit_logger is None:
            return
        audit_logger.log_tool_call(
            tool_name=tool_name,
            tool_input=tool_input,
            duration_ms=(time.monotonic() - start) * 1000,
            status="success" if exc is None else "failure",
            error_type=type(exc).__name__ if exc is not None else None,
        )

    def _persist(result: ProjectionResult, profile: UserProfile, kind: str, tool_name: str) -> None:
        if repository is not None:
            try:
                repository.save_projection(
                    StoredProjection.from_result(result, profile_id=profile.id, kind=kind)
                )
            except Exception:
                logger.exception("Failed to persist projection; continuing")
        if audit_logger is not None:
            audit_logger.log_projection(
                projection_id=result.projection.id,
                metric_count=result.summary.metric_count,
                evidence_quality=result.summary.evidence_quality,
                low_confidence=result.projection.low_confidence,
                kind=kind,
                tool_name=tool_name,
            )

    @mcp.tool
    async def calculate_metric_impact(
        ctx: Context,
        metric_type: str,
        value: float,
        age: int | None = None,
        sex: str | None = None,
    ) -> str:
        """Estimate the daily lifespan impact (minutes/day) of a single metric reading.

        Args:
            metric_type: e.g. 'steps', 'sleep_hours', 'resting_heart_rate',
                'vo2_max', 'smoking_status' (1-10 scale, 10 = never smoked).
            value: The observed value in the metric's unit.
            age: Age in years (defaults to 30 when omitted).
            sex: 'male', 'female' or 'prefer_not_to_say' (defaults to male).
        """
        start = time.monotonic()
        tool_input = {"metric_type": metric_type, "value": value, "age": age, "sex": sex}
        try:
            profile = _profile(age, sex)
            metrics = _parse_metrics([{"type": metric_type, "value": value}])
            detail = service.aggregator.calculator.calculate_impact(metrics[0], profile)
            _audit("calculate_metric_impact", tool_input, start)
            return json.dumps({
                "status": "ok",
                "supported": metric_type in service.aggregator.calculator.registry,
                "impact": detail.as_dict(),
                "disclaimer": _DISCLAIMER,
            }, indent=2)
        except Exception as exc:
            _audit("calculate_metric_impact", tool_input, start, exc)
            raise

    @mcp.tool
    async def impact_summary(
        ctx: Context,
        metrics: list[dict[str, Any]],
        age: int | None = None,
        sex: str | None = None,
        period: str = "day",
    ) -> str:
        """Sum per-metric impacts into a daily total and scale it to a display period.

        Args:
            metrics: List of {"type": ..., "value": ...} readings.
            age: Age in years (defaults to 30 when omitted).
            sex: 'male', 'female' or 'prefer_not_to_say'.
            period: 'day', 'month' or 'year' (display scaling only).
        """
        start = time.monotonic()
        tool_input = {"metrics": metrics, "age": age, "sex": sex, "period": period}
        try:
            effective_period = _validate_period(period)
            profile = _profile(age, sex)
            summary = service.aggregator.calculate(_parse_metrics(metrics), profile)
            _audit("impact_summary", tool_input, start)
            return json.dumps({
                "status": "ok",
                **summary.as_dict(effective_period),
                "confidence": confidence_description(summary.evidence_quality),
            }, indent=2)
        except Exception as exc:
            _audit("impact_summary", tool_input, start, exc)
            raise

    @mcp.tool
    async def life_projection(
        ctx: Context,
        metrics: list[dict[str, Any]],
        age: int | None = None,
        sex: str | None = None,
        period: str = "day",
    ) -> str:
        """Project adjusted life expectancy from health metrics and demographics.

        The projection always uses daily impact rates; ``period`` only
        controls the scaled impact shown alongside it.

        Args:
            metrics: List of {"type": ..., "value": ..., "date"?, "source"?} readings.
            age: Age in years (defaults to 30 when omitted, flagged low confidence).
            sex: 'male', 'female' or 'prefer_not_to_say' (defaults to male).
            period: 'day', 'month' or 'year'.
        """
        start = time.monotonic()
        tool_input = {"metrics": metrics, "age": age, "sex": sex, "period": period}
        try:
            effective_period = _validate_period(period)
            profile = _profile(age, sex)
            result = service.calculate(_parse_metrics(metrics), profile)
            _persist(result, profile, "actual", "life_projection")
            _audit("life_projection", tool_input, start)
            return json.dumps(_projection_payload(result, effective_period, service, profile), indent=2)
        except Exception as exc:
            _audit("life_projection", tool_input, start, exc)
            raise

    @mcp.tool
    async def optimal_projection(
        ctx: Context,
        age: int | None = None,
        sex: str | None = None,
    ) -> str:
        """Project life expectancy if every metric sat at its recommended value.

        Args:
            age: Age in years (defaults to 30 when omitted).
            sex: 'male', 'female' or 'prefer_not_to_say'.
        """
        start = time.monotonic()
        tool_input = {"age": age, "sex": sex}
        try:
            profile = _profile(age, sex)
            result = service.calculate_optimal(profile)
            _persist(result, profile, "optimal", "optimal_projection")
            _audit("optimal_projection", tool_input, start)
            return json.dumps(_projection_payload(result, "day", service, profile), indent=2)
        except Exception as exc:
            _audit("optimal_projection", tool_input, start, exc)
            raise
