"""SQLite storage for projection history and the audit trail.

The schema is applied as an ordered list of numbered migrations; each one
that runs is recorded in ``schema_version`` so reopening a file database
only applies what is new.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

# Numeric results only: raw metric readings are never persisted.
_PROJECTIONS = """
CREATE TABLE IF NOT EXISTS projections (
    id                          TEXT PRIMARY KEY,
    calculation_date            TEXT NOT NULL,
    profile_id                  TEXT,
    current_age                 REAL NOT NULL,
    baseline_life_expectancy    REAL NOT NULL,
    adjusted_life_expectancy    REAL NOT NULL,
    confidence_percentage       REAL NOT NULL,
    confidence_interval_years   REAL NOT NULL,
    daily_impact_minutes        REAL NOT NULL,
    metric_count                INTEGER NOT NULL DEFAULT 0,
    top_contributor             TEXT,
    used_default_age            INTEGER NOT NULL DEFAULT 0,
    used_default_sex            INTEGER NOT NULL DEFAULT 0,
    low_confidence              INTEGER NOT NULL DEFAULT 0,
    kind                        TEXT NOT NULL DEFAULT 'actual',
    created_at                  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_projections_date    ON projections(calculation_date);
CREATE INDEX IF NOT EXISTS idx_projections_profile ON projections(profile_id);
"""

# Tagged events; tool input is stored as a hash only.
_AUDIT_LOG = """
CREATE TABLE IF NOT EXISTS audit_log (
    id              TEXT PRIMARY KEY,
    timestamp       TEXT NOT NULL,
    action          TEXT NOT NULL,
    tool_name       TEXT,
    tool_input_hash TEXT,
    projection_id   TEXT,
    duration_ms     REAL,
    status          TEXT NOT NULL DEFAULT 'success',
    error_type      TEXT,
    payload_json    TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action    ON audit_log(action);
CREATE INDEX IF NOT EXISTS idx_audit_tool      ON audit_log(tool_name);
"""

# (version, description, DDL), strictly increasing.
MIGRATIONS: tuple[tuple[int, str, str], ...] = (
    (1, "projections table", _PROJECTIONS),
    (2, "audit_log table", _AUDIT_LOG),
)

SCHEMA_VERSION = MIGRATIONS[-1][0]


class DatabaseError(Exception):
    """Raised when database operations fail."""


class LifespanDatabase:
    """Owns one SQLite connection and keeps its schema current.

    ``":memory:"`` gives a throwaway database for tests; any other path is
    expanded and its parent directory created on first use.

    Usage::

        with LifespanDatabase("~/.amped/lifespan.db") as db:
            repo = ProjectionRepository(db)
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        """The open connection.

        Raises:
            DatabaseError: If ``initialize()`` has not been called (or the
                database was closed).
        """
        if self._conn is None:
            raise DatabaseError(
                f"Lifespan database {self._db_path} not initialized; call initialize() first"
            )
        return self._conn

    def initialize(self) -> None:
        """Open the connection and apply pending migrations. Safe to repeat."""
        if self._conn is not None:
            return

        target = self._db_path
        if target != ":memory:":
            db_file = Path(target).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_file)

        conn = sqlite3.connect(target)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        self._conn = conn

        applied = self._migrate()
        logger.info(
            "Lifespan database ready: %s (schema v%d, %d migrations applied)",
            self._db_path,
            SCHEMA_VERSION,
            applied,
        )

    def _migrate(self) -> int:
        conn = self.connection
        conn.executescript(_VERSION_TABLE)
        current = self.get_schema_version()

        applied = 0
        for version, description, ddl in MIGRATIONS:
            if version <= current:
                continue
            conn.executescript(ddl)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.commit()
            applied += 1
            logger.info("Applied schema migration v%d: %s", version, description)
        return applied

    def get_schema_version(self) -> int:
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Lifespan database closed: %s", self._db_path)

    def __enter__(self) -> LifespanDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
