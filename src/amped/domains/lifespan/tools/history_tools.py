"""MCP tools for stored projection history: listing, trends, deletion.

All deletions are audit-logged.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from amped.core.audit.logger import AuditLogger
    from amped.core.storage.repository import ProjectionRepository
    from amped.domains.lifespan.domain_logic.trend_analyzer import ProjectionTrendAnalyzer

logger = logging.getLogger(__name__)

_KINDS = ("actual", "optimal", "all")


def register_history_tools(
    mcp: FastMCP,
    repository: ProjectionRepository,
    trend_analyzer: ProjectionTrendAnalyzer,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register projection history tools on the MCP server."""

    @mcp.tool
    async def projection_history(
        ctx: Context,
        limit: int = 10,
        kind: str = "actual",
    ) -> str:
        """List recent stored projections, newest first.

        Args:
            limit: Maximum projections to return (default: 10).
            kind: 'actual', 'optimal' or 'all'.
        """
        if kind not in _KINDS:
            raise ValueError(f"kind must be one of: {' | '.join(_KINDS)}")
        history = repository.get_history(limit=limit, kind=None if kind == "all" else kind)
        return json.dumps({
            "status": "ok",
            "count": len(history),
            "total_stored": repository.count_projections(),
            "projections": [p.as_dict() for p in history],
        }, indent=2)

    @mcp.tool
    async def projection_trend(
        ctx: Context,
        limit: int = 30,
    ) -> str:
        """Show whether projected life expectancy is improving, declining or stable.

        Args:
            limit: Number of recent projections to analyze (default: 30).
        """
        trend = trend_analyzer.compute_trend(limit=limit)
        return json.dumps({
            "status": "ok",
            "trend": trend,
            "top_contributors": trend_analyzer.top_contributor_counts(limit=limit),
        }, indent=2)

    @mcp.tool
    async def delete_projection_history(
        ctx: Context,
        confirm: bool = False,
    ) -> str:
        """Permanently delete all stored projections.

        Args:
            confirm: Must be true to actually delete.
        """
        if not confirm:
            return json.dumps({
                "status": "confirmation_required",
                "would_delete": repository.count_projections(),
                "message": "Call again with confirm=true to delete all stored projections.",
            })

        deleted = repository.delete_all()
        if audit_logger is not None:
            audit_logger.log_history_delete(count=deleted, tool_name="delete_projection_history")
        logger.info("Deleted projection history (%d records)", deleted)
        return json.dumps({"status": "deleted", "records_deleted": deleted})
