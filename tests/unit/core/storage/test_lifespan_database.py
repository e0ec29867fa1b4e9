"""Tests for LifespanDatabase: schema creation, versioning, lifecycle."""

from __future__ import annotations

import pytest

from amped.core.storage.database import SCHEMA_VERSION, DatabaseError, LifespanDatabase


class TestInitialization:
    def test_in_memory_initialize(self):
        db = LifespanDatabase(":memory:")
        db.initialize()
        assert db.connection is not None
        db.close()

    def test_double_initialize_is_idempotent(self):
        db = LifespanDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.initialize()
        assert db.connection is conn
        db.close()

    def test_connection_before_init_raises(self):
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = LifespanDatabase(":memory:").connection

    def test_context_manager_closes(self):
        with LifespanDatabase(":memory:") as db:
            assert db.connection is not None
        with pytest.raises(DatabaseError):
            _ = db.connection


class TestSchema:
    def test_schema_version_recorded(self):
        with LifespanDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION == 2

    def test_tables_created(self):
        with LifespanDatabase(":memory:") as db:
            rows = db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
        assert {r[0] for r in rows} >= {"projections", "audit_log", "schema_version"}

    def test_indexes_created(self):
        with LifespanDatabase(":memory:") as db:
            rows = db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='index'"
            ).fetchall()
        indexes = {r[0] for r in rows}
        for idx in (
            "idx_projections_date",
            "idx_projections_profile",
            "idx_audit_timestamp",
            "idx_audit_action",
            "idx_audit_tool",
        ):
            assert idx in indexes, f"Missing index: {idx}"

    def test_projection_table_holds_no_metric_values(self):
        with LifespanDatabase(":memory:") as db:
            columns = {
                row["name"] for row in db.connection.execute("PRAGMA table_info(projections)")
            }
        assert "value" not in columns
        assert "adjusted_life_expectancy" in columns


class TestFileDatabase:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "lifespan.db"
        db = LifespanDatabase(str(db_path))
        db.initialize()
        assert db_path.exists()
        db.close()

    def test_reopen_keeps_version(self, tmp_path):
        db_path = str(tmp_path / "lifespan.db")
        with LifespanDatabase(db_path) as db:
            first = db.get_schema_version()
        with LifespanDatabase(db_path) as db:
            assert db.get_schema_version() == first
            rows = db.connection.execute("SELECT version FROM schema_version ORDER BY version").fetchall()
            assert [r[0] for r in rows] == [1, 2]


class TestClose:
    def test_double_close_is_safe(self):
        db = LifespanDatabase(":memory:")
        db.initialize()
        db.close()
        db.close()
