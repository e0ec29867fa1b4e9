"""Integration tests for the Amped lifespan MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from amped.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _json(result) -> dict:
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "calculate_metric_impact",
    "impact_summary",
    "life_projection",
    "optimal_projection",
    "projection_history",
    "projection_trend",
    "delete_projection_history",
    "audit_summary",
]

METRICS = [
    {"type": "steps", "value": 12000},
    {"type": "sleep_hours", "value": 8},
]


@pytest.fixture
def client(projection_repository, audit_logger):
    mcp = create_app(repository_override=projection_repository, audit_logger_override=audit_logger)
    return Client(mcp)


@pytest.fixture
def stateless_client():
    return Client(create_app())


def test_server_lists_all_tools(client):
    async def _check():
        async with client:
            names = [t.name for t in await client.list_tools()]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in names, f"Missing tool: {expected}"
    _run(_check())


def test_stateless_server_has_no_history_tools(stateless_client):
    async def _check():
        async with stateless_client:
            names = [t.name for t in await stateless_client.list_tools()]
            assert "life_projection" in names
            assert "projection_history" not in names
            assert "audit_summary" not in names
    _run(_check())


def test_audit_override_alone_still_opens_projection_storage(monkeypatch, tmp_path, audit_logger):
    monkeypatch.setenv("PERSIST_PROJECTIONS", "true")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "lifespan.db"))
    client = Client(create_app(audit_logger_override=audit_logger))

    async def _check():
        async with client:
            names = [t.name for t in await client.list_tools()]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in names, f"Missing tool: {expected}"
            await client.call_tool("life_projection", {"metrics": METRICS, "age": 40, "sex": "male"})
            history = _json(await client.call_tool("projection_history", {}))
            assert history["count"] == 1
    _run(_check())
    assert audit_logger.count_events(action="projection_calculated") == 1
    assert (tmp_path / "lifespan.db").exists()


def test_overrides_without_persistence_keep_missing_side_off(audit_logger):
    client = Client(create_app(audit_logger_override=audit_logger))

    async def _check():
        async with client:
            names = [t.name for t in await client.list_tools()]
            assert "audit_summary" in names
            assert "projection_history" not in names
    _run(_check())


def test_health_check(client):
    async def _check():
        async with client:
            data = _json(await client.call_tool("health_check", {}))
            assert data["status"] == "ok"
            assert data["storage_enabled"] is True
            assert "steps" in data["metric_types"]
    _run(_check())


def test_calculate_metric_impact(client):
    async def _check():
        async with client:
            data = _json(await client.call_tool(
                "calculate_metric_impact", {"metric_type": "steps", "value": 12000, "age": 40},
            ))
            assert data["supported"] is True
            assert data["impact"]["lifespan_impact_minutes"] == pytest.approx(18.75)
            assert data["impact"]["comparison"] == "beneficial"
    _run(_check())


def test_impact_summary_scales_for_display(client):
    async def _check():
        async with client:
            data = _json(await client.call_tool(
                "impact_summary", {"metrics": METRICS, "age": 40, "sex": "male", "period": "month"},
            ))
            assert data["daily_impact_minutes"] == pytest.approx(28.75)
            assert data["period_impact_minutes"] == pytest.approx(28.75 * 30 * 0.85)
            assert data["confidence"].startswith("High confidence")
    _run(_check())


def test_life_projection_persists_and_audits(client, projection_repository, audit_logger):
    async def _check():
        async with client:
            data = _json(await client.call_tool(
                "life_projection", {"metrics": METRICS, "age": 40, "sex": "male"},
            ))
            projection = data["projection"]
            assert projection["baseline_life_expectancy_years"] == pytest.approx(73.5)
            assert projection["adjusted_life_expectancy_years"] == pytest.approx(73.919, abs=0.005)
            assert projection["low_confidence"] is False
            assert data["cohort"]["annual_mortality_rate"] == pytest.approx(0.00002)
            assert data["cohort"]["mortality_adjustment_factor"] == 1.0
            assert "disclaimer" in data
    _run(_check())
    assert projection_repository.count_projections() == 1
    assert audit_logger.count_events(action="projection_calculated") == 1
    assert audit_logger.count_events(action="tool_invocation") == 1


def test_life_projection_without_demographics_is_low_confidence(client):
    async def _check():
        async with client:
            data = _json(await client.call_tool("life_projection", {"metrics": METRICS}))
            assert data["projection"]["used_default_age"] is True
            assert data["projection"]["low_confidence"] is True
    _run(_check())


def test_invalid_period_rejected_and_audited(client, audit_logger):
    async def _check():
        async with client:
            with pytest.raises(ToolError):
                await client.call_tool(
                    "life_projection", {"metrics": METRICS, "age": 40, "period": "week"},
                )
    _run(_check())
    event = audit_logger.get_events(action="tool_invocation")[0]
    assert event["status"] == "failure"
    assert event["error_type"] == "ValueError"


def test_invalid_metric_rejected(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError):
                await client.call_tool("impact_summary", {"metrics": [{"type": "steps"}]})
    _run(_check())


def test_optimal_projection_stored_separately(client, projection_repository):
    async def _check():
        async with client:
            data = _json(await client.call_tool("optimal_projection", {"age": 40, "sex": "female"}))
            assert data["impact"]["metric_count"] == 14
            assert data["projection"]["net_impact_years"] > 0
    _run(_check())
    assert projection_repository.count_projections(kind="optimal") == 1
    assert projection_repository.count_projections(kind="actual") == 0


def test_history_trend_and_delete(client, projection_repository, audit_logger):
    async def _check():
        async with client:
            for steps in (4000, 8000, 12000):
                await client.call_tool(
                    "life_projection",
                    {"metrics": [{"type": "steps", "value": steps}], "age": 40, "sex": "male"},
                )
            history = _json(await client.call_tool("projection_history", {"limit": 2}))
            assert history["count"] == 2
            assert history["total_stored"] == 3

            trend = _json(await client.call_tool("projection_trend", {}))
            assert trend["trend"]["data_points"] == 3
            assert trend["top_contributors"] == {"steps": 3}

            pending = _json(await client.call_tool("delete_projection_history", {}))
            assert pending["status"] == "confirmation_required"
            assert pending["would_delete"] == 3

            deleted = _json(await client.call_tool("delete_projection_history", {"confirm": True}))
            assert deleted == {"status": "deleted", "records_deleted": 3}
    _run(_check())
    assert projection_repository.count_projections() == 0
    assert audit_logger.count_events(action="history_deleted") == 1


def test_audit_summary(client):
    async def _check():
        async with client:
            await client.call_tool("life_projection", {"metrics": METRICS, "age": 40})
            data = _json(await client.call_tool("audit_summary", {"days": 7}))
            assert data["projections_calculated"] == 1
            assert data["total_events"] >= 2
    _run(_check())
