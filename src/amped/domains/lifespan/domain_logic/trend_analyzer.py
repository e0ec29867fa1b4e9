"""Is the projected lifespan moving? Trends over stored projections.

Works purely on persisted projection numbers; raw metric readings are
never needed (or available) here.
"""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import dataclass
from typing import Any

from amped.core.storage.repository import ProjectionRepository

logger = logging.getLogger(__name__)

# Half-over-half changes within this many years count as stable.
DIRECTION_THRESHOLD_YEARS = 0.1


@dataclass(frozen=True)
class ProjectionTrend:
    """Summary statistics of adjusted life expectancy, newest value first."""

    values: tuple[float, ...]
    net_impact_current: float

    @property
    def direction(self) -> str:
        """Mean of the newer half against the older half.

        With an odd count the middle value belongs to the older half.
        """
        if len(self.values) < 2:
            return "insufficient_data"
        mid = len(self.values) // 2
        change = statistics.fmean(self.values[:mid]) - statistics.fmean(self.values[mid:])
        if change > DIRECTION_THRESHOLD_YEARS:
            return "improving"
        if change < -DIRECTION_THRESHOLD_YEARS:
            return "declining"
        return "stable"

    def as_dict(self) -> dict[str, Any]:
        values = self.values
        spread = statistics.stdev(values) if len(values) > 1 else 0.0
        return {
            "current": round(values[0], 4),
            "mean": round(statistics.fmean(values), 4),
            "median": round(statistics.median(values), 4),
            "min": round(min(values), 4),
            "max": round(max(values), 4),
            "std_dev": round(spread, 4),
            "direction": self.direction,
            "net_impact_current": round(self.net_impact_current, 4),
            "data_points": len(values),
        }


class ProjectionTrendAnalyzer:
    """Reads projection history from the repository and summarises it.

    Only ``actual`` projections count; optimal projections are a
    what-if and would distort the trend.

    Usage::

        analyzer = ProjectionTrendAnalyzer(repository)
        analyzer.compute_trend(limit=30)["direction"]
    """

    def __init__(self, repository: ProjectionRepository) -> None:
        self._repository = repository

    def trend(self, *, limit: int = 30, profile_id: str | None = None) -> ProjectionTrend | None:
        history = self._repository.get_history(limit=limit, profile_id=profile_id)
        if not history:
            return None
        return ProjectionTrend(
            values=tuple(p.adjusted_life_expectancy for p in history),
            net_impact_current=history[0].net_impact_years,
        )

    def compute_trend(self, *, limit: int = 30, profile_id: str | None = None) -> dict[str, Any]:
        """JSON-ready trend, or ``{"data_points": 0, "status": "no_data"}``."""
        trend = self.trend(limit=limit, profile_id=profile_id)
        if trend is None:
            logger.debug("No stored projections to trend")
            return {"data_points": 0, "status": "no_data"}
        return trend.as_dict()

    def top_contributor_counts(self, *, limit: int = 30) -> dict[str, int]:
        """How often each metric type was the largest contributor, most frequent first."""
        counts = Counter(
            p.top_contributor
            for p in self._repository.get_history(limit=limit)
            if p.top_contributor
        )
        return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))
