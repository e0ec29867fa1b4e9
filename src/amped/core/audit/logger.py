"""Audit trail of tool calls, projections and history deletions.

Each event kind is its own frozen payload dataclass; the ``action`` tag
stored with a row is read off the payload class, so a row can always be
decoded back into the payload that produced it:

* ``ToolInvocation``        a tool ran (its input kept only as a hash)
* ``ProjectionCalculated``  a projection was produced
* ``HistoryDeleted``        stored projections were removed

No metric readings or demographics are written to ``audit_log``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Union

from amped.core.storage.database import LifespanDatabase

logger = logging.getLogger(__name__)


def _hash_input(data: Any) -> str:
    """Hex SHA-256 of ``data`` as sorted, compact JSON ("" if not serializable)."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return ""
    return hashlib.sha256(canonical.encode()).hexdigest()


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolInvocation:
    ACTION: ClassVar[str] = "tool_invocation"

    tool_name: str
    tool_input_hash: str = ""
    duration_ms: float | None = None
    status: str = "success"  # 'success' | 'failure'
    error_type: str | None = None


@dataclass(frozen=True)
class ProjectionCalculated:
    ACTION: ClassVar[str] = "projection_calculated"

    projection_id: str
    metric_count: int
    evidence_quality: float
    low_confidence: bool
    kind: str = "actual"
    tool_name: str = ""


@dataclass(frozen=True)
class HistoryDeleted:
    ACTION: ClassVar[str] = "history_deleted"

    records_deleted: int
    tool_name: str = ""


AuditPayload = Union[ToolInvocation, ProjectionCalculated, HistoryDeleted]

_PAYLOAD_TYPES: dict[str, type] = {
    cls.ACTION: cls for cls in (ToolInvocation, ProjectionCalculated, HistoryDeleted)
}


@dataclass(frozen=True)
class AuditEvent:
    payload: AuditPayload

    @property
    def action(self) -> str:
        return self.payload.ACTION

    @property
    def tool_name(self) -> str:
        return self.payload.tool_name


def decode_payload(action: str, payload_json: str | None) -> AuditPayload | None:
    """Rebuild the payload stored with a row; None for unknown tags."""
    cls = _PAYLOAD_TYPES.get(action)
    if cls is None or not payload_json:
        return None
    return cls(**json.loads(payload_json))


def _indexed_columns(payload: AuditPayload) -> tuple[Any, ...]:
    """Values for the queryable columns beside ``payload_json``."""
    if isinstance(payload, ToolInvocation):
        return (
            payload.tool_input_hash or None,
            None,
            payload.duration_ms,
            payload.status,
            payload.error_type,
        )
    if isinstance(payload, ProjectionCalculated):
        return (None, payload.projection_id, None, "success", None)
    return (None, None, None, "success", None)


def _filters(**conditions: Any) -> tuple[str, list[Any]]:
    """WHERE clause for the non-empty ``column=value`` pairs (``since`` is a lower bound)."""
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in conditions.items():
        if not value:
            continue
        if column == "since":
            clauses.append("timestamp >= ?")
        else:
            clauses.append(f"{column} = ?")
        params.append(value)
    return (" WHERE " + " AND ".join(clauses)) if clauses else "", params


# ---------------------------------------------------------------------------
# AuditLogger
# ---------------------------------------------------------------------------

class AuditLogger:
    """Writes and reads ``audit_log`` rows.

    Writes commit immediately. A failed write is logged and reported as an
    empty event id; it never propagates into the tool being audited.

    Usage::

        audit = AuditLogger(lifespan_db)
        audit.log_tool_call("life_projection", {"age": 40}, duration_ms=3.2)
        audit.count_events(action="projection_calculated")
    """

    def __init__(self, database: LifespanDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        event_id = str(uuid.uuid4())
        row = (
            event_id,
            datetime.now(timezone.utc).isoformat(),
            event.action,
            event.tool_name or None,
            *_indexed_columns(event.payload),
            json.dumps(asdict(event.payload), separators=(",", ":")),
        )
        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, tool_name, tool_input_hash,
                    projection_id, duration_ms, status, error_type, payload_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                row,
            )
            conn.commit()
        except Exception:
            logger.exception("Audit write failed; %s event dropped", event.action)
            return ""
        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
    ) -> str:
        """Record one tool run. ``tool_input`` is hashed, never stored."""
        return self.log_event(AuditEvent(ToolInvocation(
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
        )))

    def log_projection(
        self,
        *,
        projection_id: str,
        metric_count: int,
        evidence_quality: float,
        low_confidence: bool,
        kind: str = "actual",
        tool_name: str = "",
    ) -> str:
        return self.log_event(AuditEvent(ProjectionCalculated(
            projection_id=projection_id,
            metric_count=metric_count,
            evidence_quality=round(evidence_quality, 4),
            low_confidence=low_confidence,
            kind=kind,
            tool_name=tool_name,
        )))

    def log_history_delete(self, *, count: int, tool_name: str = "") -> str:
        return self.log_event(AuditEvent(HistoryDeleted(records_deleted=count, tool_name=tool_name)))

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Newest-first rows as dicts, with ``payload`` decoded from JSON.

        ``since`` is an ISO 8601 lower bound on the event timestamp.
        """
        where, params = _filters(action=action, tool_name=tool_name, since=since)
        rows = self._db.connection.execute(
            f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?",
            [*params, limit],
        ).fetchall()

        events = []
        for row in rows:
            event = dict(row)
            event["payload"] = json.loads(event.pop("payload_json") or "{}")
            events.append(event)
        return events

    def count_events(self, *, action: str | None = None, since: str | None = None) -> int:
        where, params = _filters(action=action, since=since)
        return self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()[0]

    def counts_by_action(self, *, since: str | None = None) -> dict[str, int]:
        """Event totals per action tag, every known tag present."""
        where, params = _filters(since=since)
        counts = {action: 0 for action in _PAYLOAD_TYPES}
        for action, n in self._db.connection.execute(
            f"SELECT action, COUNT(*) FROM audit_log{where} GROUP BY action", params
        ):
            counts[action] = n
        return counts
