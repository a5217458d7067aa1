"""
Deviation Classifier - one trip versus its vehicle's baseline

Two independent axes:
- deviation_type: position relative to the baseline's tolerance band
- severity: magnitude of the deviation (>= 25% high, >= 15% medium)
"""

from typing import Optional, Union

from fleet_efficiency.models import (
    Baseline,
    DeviationRecord,
    DeviationType,
    NotApplicable,
    Severity,
    TripSample,
)

HIGH_DEVIATION_PERCENT = 25.0
MEDIUM_DEVIATION_PERCENT = 15.0


def deviation_percent(actual: float, baseline_value: float) -> float:
    return (actual - baseline_value) / baseline_value * 100


def classify_deviation_type(
    percent: float, tolerance_upper: float, tolerance_lower: float
) -> DeviationType:
    if percent > tolerance_upper:
        return DeviationType.ABOVE_UPPER
    if percent < -tolerance_lower:
        return DeviationType.BELOW_LOWER
    return DeviationType.WITHIN_RANGE


def classify_severity(
    percent: float,
    high_threshold: float = HIGH_DEVIATION_PERCENT,
    medium_threshold: float = MEDIUM_DEVIATION_PERCENT,
) -> Severity:
    magnitude = abs(percent)
    if magnitude >= high_threshold:
        return Severity.HIGH
    if magnitude >= medium_threshold:
        return Severity.MEDIUM
    return Severity.LOW


def classify_deviation(
    trip: TripSample,
    baseline: Optional[Baseline],
    high_threshold: float = HIGH_DEVIATION_PERCENT,
    medium_threshold: float = MEDIUM_DEVIATION_PERCENT,
) -> Union[DeviationRecord, NotApplicable]:
    """
    Compare a trip's efficiency against the stored baseline.

    A missing baseline is an expected state, not an error, and yields
    NotApplicable. The returned record carries no insight text; see
    deviation_insights.attach_insights.
    """
    if baseline is None:
        return NotApplicable(
            reason="No baseline for vehicle",
            vehicle_id=trip.vehicle_id,
            trip_id=trip.trip_id,
        )

    if baseline.baseline_value <= 0:
        return NotApplicable(
            reason="Baseline value is not positive",
            vehicle_id=baseline.vehicle_id,
            trip_id=trip.trip_id,
        )

    actual = trip.efficiency_value
    if actual <= 0:
        return NotApplicable(
            reason="Trip has no efficiency value",
            vehicle_id=baseline.vehicle_id,
            trip_id=trip.trip_id,
        )

    percent = deviation_percent(actual, baseline.baseline_value)

    return DeviationRecord(
        trip_id=trip.trip_id,
        vehicle_id=trip.vehicle_id or baseline.vehicle_id,
        vehicle_registration=baseline.vehicle_registration,
        trip_date=trip.start_date,
        trip_serial_number=trip.trip_serial_number,
        actual_efficiency=actual,
        baseline_value=baseline.baseline_value,
        deviation_percent=percent,
        deviation_type=classify_deviation_type(
            percent,
            baseline.tolerance_upper_percent,
            baseline.tolerance_lower_percent,
        ),
        severity=classify_severity(percent, high_threshold, medium_threshold),
    )
