"""
Baseline Repository - one efficiency baseline per vehicle

Key-value store over the `fuel_efficiency_baselines` table (unique on
vehicle_id). Writes replace the whole record; there is no partial update.
Uses SQLAlchemy Core so the same code runs on MySQL and SQLite.
"""

import logging
from typing import List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import BaselineStorageError
from fleet_efficiency.models import Baseline, DataRange
from fleet_efficiency.timezone_utils import as_utc, to_naive_utc

logger = logging.getLogger(__name__)

metadata = MetaData()

baselines_table = Table(
    "fuel_efficiency_baselines",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("vehicle_id", String(64), nullable=False, unique=True, index=True),
    Column("vehicle_registration", String(64)),
    Column("baseline_value", Numeric(6, 2, asdecimal=False), nullable=False),
    Column("baseline_calculated_date", DateTime, nullable=False),
    Column("sample_size", Integer, nullable=False),
    Column("confidence_score", Integer, nullable=False, index=True),
    Column("tolerance_upper_percent", Numeric(5, 2, asdecimal=False), nullable=False),
    Column("tolerance_lower_percent", Numeric(5, 2, asdecimal=False), nullable=False),
    Column("last_updated", DateTime, nullable=False, index=True),
    Column("data_range", JSON, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
    CheckConstraint("baseline_value > 0", name="valid_baseline_value"),
    CheckConstraint("sample_size >= 10", name="valid_sample_size"),
    CheckConstraint(
        "confidence_score >= 0 AND confidence_score <= 100",
        name="valid_confidence_score",
    ),
)


def _baseline_to_row(baseline: Baseline) -> dict:
    return {
        "vehicle_id": baseline.vehicle_id,
        "vehicle_registration": baseline.vehicle_registration,
        "baseline_value": baseline.baseline_value,
        "baseline_calculated_date": to_naive_utc(baseline.computed_at),
        "sample_size": baseline.sample_size,
        "confidence_score": baseline.confidence_score,
        "tolerance_upper_percent": baseline.tolerance_upper_percent,
        "tolerance_lower_percent": baseline.tolerance_lower_percent,
        "last_updated": to_naive_utc(baseline.last_updated),
        "data_range": baseline.data_range.to_dict(),
    }


def _row_to_baseline(row) -> Baseline:
    return Baseline(
        vehicle_id=row.vehicle_id,
        vehicle_registration=row.vehicle_registration,
        baseline_value=float(row.baseline_value),
        sample_size=int(row.sample_size),
        confidence_score=int(row.confidence_score),
        tolerance_upper_percent=float(row.tolerance_upper_percent),
        tolerance_lower_percent=float(row.tolerance_lower_percent),
        computed_at=as_utc(row.baseline_calculated_date),
        last_updated=as_utc(row.last_updated),
        data_range=DataRange.from_dict(row.data_range),
    )


class BaselineRepository:
    """Repository for per-vehicle efficiency baselines."""

    def __init__(self, engine: Engine):
        self.engine = engine
        logger.info(f"BaselineRepository initialized ({engine.dialect.name})")

    def create_table(self) -> None:
        """Create the baselines table if it does not exist."""
        try:
            metadata.create_all(self.engine, tables=[baselines_table])
        except SQLAlchemyError as e:
            raise BaselineStorageError("create_table", cause=e) from e

    def get(self, vehicle_id: str) -> Optional[Baseline]:
        """Get the stored baseline for a vehicle, or None."""
        query = select(baselines_table).where(baselines_table.c.vehicle_id == vehicle_id)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting baseline for {vehicle_id}: {e}")
            raise BaselineStorageError("read_baseline", vehicle_id=vehicle_id, cause=e) from e

        return _row_to_baseline(row) if row else None

    def list_all(self) -> List[Baseline]:
        """Get every stored baseline."""
        query = select(baselines_table).order_by(baselines_table.c.vehicle_id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Error listing baselines: {e}")
            raise BaselineStorageError("list_baselines", cause=e) from e

        return [_row_to_baseline(r) for r in rows]

    def _update(self, conn, vehicle_id: str, values: dict) -> int:
        result = conn.execute(
            update(baselines_table)
            .where(baselines_table.c.vehicle_id == vehicle_id)
            .values(**values)
        )
        return result.rowcount

    def _insert(self, conn, values: dict) -> None:
        conn.execute(insert(baselines_table).values(**values))

    def upsert(self, baseline: Baseline) -> Baseline:
        """
        Insert or fully replace the baseline for baseline.vehicle_id.

        Last write wins: if another writer inserts the same vehicle between
        the existence check and the insert, the insert is retried as an update.

        Returns:
            The baseline as passed in

        Raises:
            BaselineStorageError: On any database failure
        """
        values = _baseline_to_row(baseline)
        vehicle_id = baseline.vehicle_id
        try:
            try:
                with self.engine.begin() as conn:
                    existing = conn.execute(
                        select(baselines_table.c.id).where(
                            baselines_table.c.vehicle_id == vehicle_id
                        )
                    ).first()
                    if existing:
                        self._update(conn, vehicle_id, values)
                    else:
                        self._insert(conn, values)
            except IntegrityError as insert_error:
                logger.warning(f"Integrity error writing {vehicle_id}, retrying as update")
                with self.engine.begin() as conn:
                    # no row means the constraint that failed was not the unique key
                    if not self._update(conn, vehicle_id, values):
                        raise insert_error
        except SQLAlchemyError as e:
            logger.error(f"Error storing baseline for {vehicle_id}: {e}")
            raise BaselineStorageError("write_baseline", vehicle_id=vehicle_id, cause=e) from e

        logger.info(
            f"Stored baseline for {vehicle_id}: "
            f"{baseline.baseline_value:.2f} (confidence {baseline.confidence_score})"
        )
        return baseline

    def delete(self, vehicle_id: str) -> bool:
        """Delete a vehicle's baseline. Returns True if a row was removed."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(baselines_table).where(baselines_table.c.vehicle_id == vehicle_id)
                )
        except SQLAlchemyError as e:
            raise BaselineStorageError("delete_baseline", vehicle_id=vehicle_id, cause=e) from e
        return result.rowcount > 0
