"""Amped lifespan MCP server: application factory.

``create_app()`` wires a fresh server per call (tests build their own with
in-memory storage); the module attribute ``mcp`` is built lazily on first
access for FastMCP discovery.
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from amped.core.audit.logger import AuditLogger
from amped.core.config.constants_loader import FormulaConstants, load_constants
from amped.core.config.settings import get_settings
from amped.core.storage.database import LifespanDatabase
from amped.core.storage.repository import ProjectionRepository
from amped.domains.lifespan.domain_logic.aggregate import AggregateImpactEngine
from amped.domains.lifespan.domain_logic.impact_calculator import MetricImpactCalculator
from amped.domains.lifespan.domain_logic.mortality_table import DEFAULT_MORTALITY_TABLE
from amped.domains.lifespan.domain_logic.projection import (
    LifeProjectionEngine,
    LifeProjectionService,
)
from amped.domains.lifespan.tools.lifespan_tools import register_lifespan_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Amped Lifespan"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    constants_override: FormulaConstants | None = None,
    repository_override: ProjectionRepository | None = None,
    audit_logger_override: AuditLogger | None = None,
) -> FastMCP:
    """Build the Amped lifespan MCP server.

    Steps:
    1. Resolves formula constants (built-ins, settings, optional YAML file)
    2. Builds the calculator -> aggregator -> projection engine chain
    3. Initializes storage for projection history and the audit trail
    4. Registers all tools
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Health-impact-to-lifespan projection server. Converts health metric "
            "readings and basic demographics into per-metric daily lifespan "
            "impacts and a bounded, evidence-weighted life expectancy projection."
        ),
    )

    # --- Formula constants ---
    constants = constants_override or load_constants(settings)

    # --- Core engine chain (explicitly constructed, no singletons) ---
    calculator = MetricImpactCalculator(constants.impact)
    aggregator = AggregateImpactEngine(calculator)
    engine = LifeProjectionEngine(constants.projection, DEFAULT_MORTALITY_TABLE)
    service = LifeProjectionService(aggregator, engine)
    logger.info("Impact calculator ready with %d metric formulas", len(calculator.registry))

    # --- Storage ---
    repository: ProjectionRepository | None = repository_override
    audit_logger: AuditLogger | None = audit_logger_override
    # The database backs whichever side was not overridden.
    if (repository is None or audit_logger is None) and settings.persist_projections:
        lifespan_db = LifespanDatabase(settings.db_path)
        lifespan_db.initialize()
        if repository is None:
            repository = ProjectionRepository(lifespan_db)
        if audit_logger is None:
            audit_logger = AuditLogger(lifespan_db)
        logger.info(
            "Projection storage initialized: %s (schema v%d)",
            settings.db_path,
            lifespan_db.get_schema_version(),
        )
    elif repository is None or audit_logger is None:
        logger.info("Persistence disabled; storage not overridden stays off")

    # --- Register tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "metric_types": calculator.registry.metric_types(),
            "storage_enabled": repository is not None,
            "audit_enabled": audit_logger is not None,
            "behavior_decay_rate": constants.projection.behavior_decay_rate,
        }
        if repository is not None:
            status["projections_stored"] = repository.count_projections()
        return status

    register_lifespan_tools(server, service, repository, audit_logger)
    logger.info("Lifespan projection tools registered")

    if repository is not None:
        from amped.domains.lifespan.domain_logic.trend_analyzer import ProjectionTrendAnalyzer
        from amped.domains.lifespan.tools.history_tools import register_history_tools

        register_history_tools(server, repository, ProjectionTrendAnalyzer(repository), audit_logger)
        logger.info("Projection history tools registered")

    if audit_logger is not None:
        from amped.domains.lifespan.tools.audit_tools import register_audit_tools

        register_audit_tools(server, audit_logger)
        logger.info("Audit tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
