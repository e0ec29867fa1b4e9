"""MCP tool for reading the audit trail back.

Rows hold tool names, timings, statuses and input hashes; there are no
metric readings or demographics to show.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from amped.core.audit.logger import AuditLogger

_RECENT_LIMIT = 20
_SHOWN_FIELDS = ("timestamp", "action", "tool_name", "status", "duration_ms", "projection_id")


def register_audit_tools(mcp: FastMCP, audit_logger: AuditLogger) -> None:
    """Register the ``audit_summary`` tool."""

    @mcp.tool
    async def audit_summary(ctx: Context, days: int = 30) -> str:
        """Summarise tool calls, projections and history deletions.

        Args:
            days: Look-back window in days (default: 30).
        """
        if days < 1:
            raise ValueError("days must be at least 1")
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        counts = audit_logger.counts_by_action(since=since)
        recent = [
            {name: event.get(name) for name in _SHOWN_FIELDS}
            for event in audit_logger.get_events(since=since, limit=_RECENT_LIMIT)
        ]
        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": sum(counts.values()),
            "tool_invocations": counts["tool_invocation"],
            "projections_calculated": counts["projection_calculated"],
            "history_deletions": counts["history_deleted"],
            "recent_events": recent,
        }, indent=2)
