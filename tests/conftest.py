"""Shared test fixtures for Amped lifespan tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PERSIST_PROJECTIONS", "false")
    monkeypatch.setenv("CONSTANTS_FILE", "")
    monkeypatch.setenv("WIDEN_INTERVAL_WITH_AGE", "false")
    monkeypatch.setenv("BEHAVIOR_DECAY_RATE", "0.02")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from amped.domains.lifespan.domain_logic.models import UserProfile  # noqa: E402


@pytest.fixture
def male_40() -> UserProfile:
    return UserProfile(age=40, sex="male")


@pytest.fixture
def female_40() -> UserProfile:
    return UserProfile(age=40, sex="female")


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def lifespan_db():
    """Create an in-memory LifespanDatabase for testing."""
    from amped.core.storage.database import LifespanDatabase

    db = LifespanDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def projection_repository(lifespan_db):
    """Create a ProjectionRepository backed by in-memory SQLite."""
    from amped.core.storage.repository import ProjectionRepository

    return ProjectionRepository(lifespan_db)


@pytest.fixture
def audit_logger(lifespan_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from amped.core.audit.logger import AuditLogger

    return AuditLogger(lifespan_db)
