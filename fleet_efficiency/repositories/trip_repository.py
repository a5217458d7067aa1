"""
Trip Repository - read-only access to vehicles and trip records

Reads the fleet application's `vehicles` and `trips` tables. Soft-deleted
rows (deleted_at set) are never returned.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pymysql
from pymysql import cursors

from errors import BaselineStorageError
from fleet_efficiency.models import TripSample, Vehicle
from fleet_efficiency.timezone_utils import as_utc, to_naive_utc

logger = logging.getLogger(__name__)

_TRIP_COLUMNS = """
    id,
    vehicle_id,
    trip_serial_number,
    trip_start_date,
    start_km,
    end_km,
    fuel_quantity,
    calculated_kmpl
"""


def _to_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def row_to_trip_sample(row: Dict[str, Any]) -> TripSample:
    """Map a `trips` row to a TripSample (distance = end_km - start_km)."""
    start_km = _to_float(row.get("start_km"))
    end_km = _to_float(row.get("end_km"))
    distance = end_km - start_km if start_km is not None and end_km is not None else 0.0

    return TripSample(
        trip_id=str(row["id"]),
        vehicle_id=str(row["vehicle_id"]) if row.get("vehicle_id") is not None else None,
        trip_serial_number=row.get("trip_serial_number"),
        start_date=as_utc(row["trip_start_date"]),
        distance=distance,
        fuel_quantity=_to_float(row.get("fuel_quantity")) or 0.0,
        efficiency=_to_float(row.get("calculated_kmpl")),
    )


class TripRepository:
    """Repository for trip and vehicle reads."""

    def __init__(self, db_config: Dict[str, Any]):
        self.db_config = db_config
        logger.info(f"TripRepository initialized for DB: {db_config.get('database')}")

    def _get_connection(self):
        """Get database connection."""
        return pymysql.connect(**self.db_config, cursorclass=cursors.DictCursor)

    def _fetch(self, operation: str, query: str, params: tuple, vehicle_id=None, one=False):
        try:
            conn = self._get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.execute(query, params)
                    return cursor.fetchone() if one else cursor.fetchall()
            finally:
                conn.close()
        except pymysql.MySQLError as e:
            logger.error(f"Error in {operation} for {vehicle_id}: {e}")
            raise BaselineStorageError(operation, vehicle_id=vehicle_id, cause=e) from e

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        """Get one active vehicle."""
        row = self._fetch(
            "read_vehicle",
            """
            SELECT id, registration_number
            FROM vehicles
            WHERE id = %s
              AND deleted_at IS NULL
            """,
            (vehicle_id,),
            vehicle_id=vehicle_id,
            one=True,
        )
        if not row:
            logger.warning(f"Vehicle not found: {vehicle_id}")
            return None
        return Vehicle(vehicle_id=str(row["id"]), registration_number=row.get("registration_number"))

    def list_vehicles(self) -> List[Vehicle]:
        """Get all active vehicles."""
        rows = self._fetch(
            "list_vehicles",
            """
            SELECT id, registration_number
            FROM vehicles
            WHERE deleted_at IS NULL
            ORDER BY registration_number
            """,
            (),
        )
        logger.debug(f"Fetched {len(rows)} vehicles")
        return [
            Vehicle(vehicle_id=str(r["id"]), registration_number=r.get("registration_number"))
            for r in rows
        ]

    def get_vehicle_trips(
        self, vehicle_id: str, since: Optional[datetime] = None
    ) -> List[TripSample]:
        """
        Get a vehicle's usable trips, oldest first.

        Args:
            vehicle_id: Vehicle identifier
            since: Only trips starting at or after this time

        Returns:
            TripSample list ordered by trip_start_date
        """
        query = f"""
            SELECT {_TRIP_COLUMNS}
            FROM trips
            WHERE vehicle_id = %s
              AND fuel_quantity > 0
              AND (calculated_kmpl > 0
                   OR (calculated_kmpl IS NULL AND end_km > start_km))
              AND deleted_at IS NULL
        """
        params: tuple = (vehicle_id,)
        if since is not None:
            query += " AND trip_start_date >= %s"
            params = (vehicle_id, to_naive_utc(since))
        query += " ORDER BY trip_start_date ASC"

        rows = self._fetch("read_trips", query, params, vehicle_id=vehicle_id)
        logger.debug(f"Fetched {len(rows)} trips for {vehicle_id}")
        return [row_to_trip_sample(r) for r in rows]

    def get_trip(self, trip_id: str) -> Optional[TripSample]:
        """Get a single trip by id."""
        row = self._fetch(
            "read_trip",
            f"""
            SELECT {_TRIP_COLUMNS}
            FROM trips
            WHERE id = %s
              AND deleted_at IS NULL
            """,
            (trip_id,),
            one=True,
        )
        return row_to_trip_sample(row) if row else None
