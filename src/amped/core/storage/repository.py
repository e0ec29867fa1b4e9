"""Projection repository: persists and queries projection history."""

from __future__ import annotations

import logging
import sqlite3

from amped.core.storage.database import LifespanDatabase
from amped.core.storage.models import StoredProjection

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class ProjectionRepository:
    """CRUD repository for stored projections.

    Usage::

        db = LifespanDatabase(":memory:")
        db.initialize()
        repo = ProjectionRepository(db)

        projection_id = repo.save_projection(StoredProjection.from_result(result))
        history = repo.get_history(limit=30)
    """

    def __init__(self, database: LifespanDatabase) -> None:
        self._db = database

    @staticmethod
    def _row_to_projection(row: sqlite3.Row) -> StoredProjection:
        return StoredProjection(
            id=row["id"],
            calculation_date=row["calculation_date"],
            current_age=row["current_age"],
            baseline_life_expectancy=row["baseline_life_expectancy"],
            adjusted_life_expectancy=row["adjusted_life_expectancy"],
            confidence_percentage=row["confidence_percentage"],
            confidence_interval_years=row["confidence_interval_years"],
            daily_impact_minutes=row["daily_impact_minutes"],
            metric_count=row["metric_count"],
            top_contributor=row["top_contributor"],
            profile_id=row["profile_id"],
            used_default_age=bool(row["used_default_age"]),
            used_default_sex=bool(row["used_default_sex"]),
            low_confidence=bool(row["low_confidence"]),
            kind=row["kind"],
            created_at=row["created_at"],
        )

    def save_projection(self, projection: StoredProjection) -> str:
        """Persist a projection and return its ID.

        Raises:
            RepositoryError: If a projection with the same ID already exists.
        """
        conn = self._db.connection
        try:
            conn.execute(
                """INSERT INTO projections (
                    id, calculation_date, profile_id, current_age,
                    baseline_life_expectancy, adjusted_life_expectancy,
                    confidence_percentage, confidence_interval_years,
                    daily_impact_minutes, metric_count, top_contributor,
                    used_default_age, used_default_sex, low_confidence, kind
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    projection.id,
                    projection.calculation_date,
                    projection.profile_id,
                    projection.current_age,
                    projection.baseline_life_expectancy,
                    projection.adjusted_life_expectancy,
                    projection.confidence_percentage,
                    projection.confidence_interval_years,
                    projection.daily_impact_minutes,
                    projection.metric_count,
                    projection.top_contributor,
                    int(projection.used_default_age),
                    int(projection.used_default_sex),
                    int(projection.low_confidence),
                    projection.kind,
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Projection {projection.id} already stored") from exc
        conn.commit()
        logger.info("Saved projection %s (kind=%s)", projection.id, projection.kind)
        return projection.id

    def get_projection(self, projection_id: str) -> StoredProjection | None:
        row = self._db.connection.execute(
            "SELECT * FROM projections WHERE id = ?", (projection_id,)
        ).fetchone()
        return self._row_to_projection(row) if row else None

    def get_history(
        self,
        *,
        limit: int = 30,
        kind: str | None = "actual",
        profile_id: str | None = None,
    ) -> list[StoredProjection]:
        """Return stored projections, newest first.

        Args:
            limit: Maximum rows to return.
            kind: 'actual', 'optimal', or None for both.
            profile_id: Restrict to a single profile.
        """
        conditions: list[str] = []
        params: list[object] = []
        if kind:
            conditions.append("kind = ?")
            params.append(kind)
        if profile_id:
            conditions.append("profile_id = ?")
            params.append(profile_id)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = (
            f"SELECT * FROM projections{where} "
            "ORDER BY calculation_date DESC, rowid DESC LIMIT ?"
        )
        params.append(limit)
        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_projection(r) for r in rows]

    def count_projections(self, *, kind: str | None = None) -> int:
        if kind:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM projections WHERE kind = ?", (kind,)
            ).fetchone()
        else:
            row = self._db.connection.execute("SELECT COUNT(*) FROM projections").fetchone()
        return row[0]

    def delete_all(self) -> int:
        """Delete every stored projection. Returns the number removed."""
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM projections")
        conn.commit()
        logger.info("Deleted %d stored projections", cursor.rowcount)
        return cursor.rowcount
