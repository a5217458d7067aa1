"""
Tests for TripRepository with a mocked pymysql connection
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pymysql
import pytest

from errors import BaselineStorageError
from fleet_efficiency.models import Vehicle
from fleet_efficiency.repositories import TripRepository, row_to_trip_sample

CONNECT = "fleet_efficiency.repositories.trip_repository.pymysql.connect"


class TestRowMapping:
    """Test row_to_trip_sample"""

    def test_maps_trip_row(self, sample_trip_row):
        sample = row_to_trip_sample(sample_trip_row)

        assert sample.trip_id == "4521"
        assert sample.vehicle_id == "17"
        assert sample.trip_serial_number == "TS-04521"
        assert sample.distance == 410.0
        assert sample.fuel_quantity == 50.0
        assert sample.efficiency_value == 8.2
        assert sample.start_date == datetime(2026, 3, 20, 8, 15, tzinfo=timezone.utc)

    def test_missing_kmpl_falls_back_to_distance_over_fuel(self, sample_trip_row):
        sample_trip_row["calculated_kmpl"] = None

        sample = row_to_trip_sample(sample_trip_row)

        assert sample.efficiency_value == pytest.approx(8.2)

    def test_missing_odometer_gives_zero_distance(self, sample_trip_row):
        sample_trip_row["end_km"] = None

        assert row_to_trip_sample(sample_trip_row).distance == 0.0


class TestTripRepository:
    """Test TripRepository queries"""

    def test_get_vehicle_trips(self, db_config, mock_db_connection, sample_trip_row):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [sample_trip_row]
        since = datetime(2026, 1, 1, tzinfo=timezone.utc)

        with patch(CONNECT, return_value=mock_db_connection):
            trips = TripRepository(db_config).get_vehicle_trips("17", since=since)

        assert len(trips) == 1
        assert trips[0].efficiency_value == 8.2

        query, params = cursor.execute.call_args[0]
        assert "deleted_at IS NULL" in query
        assert "ORDER BY trip_start_date ASC" in query
        assert params == ("17", datetime(2026, 1, 1))
        mock_db_connection.close.assert_called_once()

    def test_get_vehicle_trips_without_since(self, db_config, mock_db_connection):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value

        with patch(CONNECT, return_value=mock_db_connection):
            trips = TripRepository(db_config).get_vehicle_trips("17")

        assert trips == []
        assert cursor.execute.call_args[0][1] == ("17",)

    def test_get_vehicle_trips_keeps_rows_without_kmpl(
        self, db_config, mock_db_connection, sample_trip_row
    ):
        """Rows with NULL calculated_kmpl fall back to distance / fuel"""
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        sample_trip_row["calculated_kmpl"] = None
        cursor.fetchall.return_value = [sample_trip_row]

        with patch(CONNECT, return_value=mock_db_connection):
            trips = TripRepository(db_config).get_vehicle_trips("17")

        query = cursor.execute.call_args[0][0]
        assert "calculated_kmpl IS NULL AND end_km > start_km" in query
        assert trips[0].efficiency is None
        assert trips[0].efficiency_value == pytest.approx(8.2)
        assert trips[0].is_eligible

    def test_get_vehicle(self, db_config, mock_db_connection):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = {"id": 17, "registration_number": "ABC-123"}

        with patch(CONNECT, return_value=mock_db_connection):
            vehicle = TripRepository(db_config).get_vehicle("17")

        assert vehicle == Vehicle(vehicle_id="17", registration_number="ABC-123")

    def test_get_unknown_vehicle(self, db_config, mock_db_connection):
        with patch(CONNECT, return_value=mock_db_connection):
            assert TripRepository(db_config).get_vehicle("404") is None

    def test_list_vehicles(self, db_config, mock_db_connection):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [
            {"id": 1, "registration_number": "AAA-111"},
            {"id": 2, "registration_number": None},
        ]

        with patch(CONNECT, return_value=mock_db_connection):
            vehicles = TripRepository(db_config).list_vehicles()

        assert [v.vehicle_id for v in vehicles] == ["1", "2"]
        assert vehicles[1].registration_number is None

    def test_get_trip(self, db_config, mock_db_connection, sample_trip_row):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = sample_trip_row

        with patch(CONNECT, return_value=mock_db_connection):
            trip = TripRepository(db_config).get_trip("4521")

        assert trip.trip_id == "4521"

    def test_connection_failure_raises_storage_error(self, db_config):
        error = pymysql.err.OperationalError(2003, "Can't connect to MySQL server")

        with patch(CONNECT, side_effect=error):
            with pytest.raises(BaselineStorageError) as exc_info:
                TripRepository(db_config).get_vehicle_trips("17")

        assert exc_info.value.operation == "read_trips"
        assert exc_info.value.vehicle_id == "17"
        assert "OperationalError" in exc_info.value.details["cause"]

    def test_query_failure_closes_connection(self, db_config, mock_db_connection):
        cursor = mock_db_connection.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = pymysql.err.ProgrammingError(1146, "no such table")

        with patch(CONNECT, return_value=mock_db_connection):
            with pytest.raises(BaselineStorageError):
                TripRepository(db_config).list_vehicles()

        mock_db_connection.close.assert_called_once()
