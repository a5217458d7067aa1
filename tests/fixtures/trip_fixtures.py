"""
Trip and baseline fixtures for testing
"""

from datetime import datetime, timedelta, timezone

import pytest

from fleet_efficiency.models import Baseline, DataRange, TripSample

REFERENCE_NOW = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)

# Eleven consistent trips around 8 km/l plus one 1.0 km/l outlier (index 5)
SCENARIO_EFFICIENCIES = [7.8, 7.9, 8.0, 8.1, 8.2, 1.0, 7.9, 8.0, 8.1, 8.3, 8.0, 8.2]


def make_samples(
    efficiencies,
    vehicle_id="V-001",
    start=None,
    step=timedelta(days=1),
    fuel=50.0,
):
    """Build date-ascending TripSamples with distance = efficiency * fuel."""
    start = start or REFERENCE_NOW - timedelta(days=len(efficiencies))
    return [
        TripSample(
            trip_id=f"{vehicle_id}-T{i:03d}",
            vehicle_id=vehicle_id,
            trip_serial_number=f"TS-{i:05d}",
            start_date=start + step * i,
            distance=value * fuel,
            fuel_quantity=fuel,
            efficiency=value,
        )
        for i, value in enumerate(efficiencies)
    ]


def make_baseline(
    vehicle_id="V-001",
    value=10.0,
    confidence=80,
    last_updated=None,
    tolerance=15.0,
    sample_size=20,
    registration="ABC-123",
):
    last_updated = last_updated or REFERENCE_NOW - timedelta(days=5)
    return Baseline(
        vehicle_id=vehicle_id,
        vehicle_registration=registration,
        baseline_value=value,
        sample_size=sample_size,
        confidence_score=confidence,
        tolerance_upper_percent=tolerance,
        tolerance_lower_percent=tolerance,
        computed_at=last_updated,
        last_updated=last_updated,
        data_range=DataRange(
            start_date=last_updated - timedelta(days=60),
            end_date=last_updated,
            total_distance=12000.0,
            total_fuel=1200.0,
            trip_count=sample_size,
        ),
    )


@pytest.fixture
def reference_now():
    """Fixed 'now' for window and staleness math"""
    return REFERENCE_NOW


@pytest.fixture
def scenario_samples():
    """Twelve trips, one obvious outlier"""
    return make_samples(SCENARIO_EFFICIENCIES)


@pytest.fixture
def sample_baseline():
    """Fresh, confident 10.0 km/l baseline"""
    return make_baseline()


@pytest.fixture
def sample_trip_row():
    """Sample `trips` row as returned by a pymysql DictCursor"""
    return {
        "id": 4521,
        "vehicle_id": 17,
        "trip_serial_number": "TS-04521",
        "trip_start_date": datetime(2026, 3, 20, 8, 15),
        "start_km": 120400.0,
        "end_km": 120810.0,
        "fuel_quantity": 50.0,
        "calculated_kmpl": 8.2,
    }
