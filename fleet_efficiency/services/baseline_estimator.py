"""
Baseline Estimator - recency-weighted efficiency baseline with confidence

Confidence (0-100) is half sample size, half consistency:
- sample_score      = min(N / 30, 1) * 50
- consistency_score = max(0, (0.30 - CoV) / 0.30) * 50
"""

import logging
import math
from datetime import datetime
from typing import Optional, Sequence, Union

import numpy as np

from fleet_efficiency.models import (
    Baseline,
    BaselineEstimate,
    DataRange,
    InsufficientSamples,
    TripSample,
)
from fleet_efficiency.rounding import round_half_up, round_half_up_int
from fleet_efficiency.services.outlier_filter import (
    MIN_SAMPLES,
    filter_outliers_iqr,
    select_eligible,
)
from fleet_efficiency.timezone_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_PERCENT = 15.0
RECENCY_BONUS = 0.2
FULL_CONFIDENCE_SAMPLES = 30
MAX_COEFFICIENT_OF_VARIATION = 0.30


def recency_weights(n: int) -> np.ndarray:
    """Linear ramp from 1.0 (oldest) towards 1.2 (newest)."""
    return 1 + (np.arange(n) / n) * RECENCY_BONUS


def confidence_score(sample_size: int, coefficient_of_variation: float) -> int:
    sample_score = min(sample_size / FULL_CONFIDENCE_SAMPLES, 1) * 50
    consistency_score = (
        max(
            0.0,
            (MAX_COEFFICIENT_OF_VARIATION - coefficient_of_variation)
            / MAX_COEFFICIENT_OF_VARIATION,
        )
        * 50
    )
    return round_half_up_int(sample_score + consistency_score)


def estimate_baseline(samples: Sequence[TripSample]) -> BaselineEstimate:
    """
    Estimate baseline efficiency from filtered, date-ascending samples.

    Pure function: no I/O, same input gives the same output.

    Args:
        samples: Outlier-filtered samples, oldest first

    Returns:
        BaselineEstimate with the value rounded to 2 decimals
    """
    values = np.asarray([s.efficiency_value for s in samples], dtype=float)
    n = len(values)
    if n == 0:
        raise ValueError("Cannot estimate a baseline from an empty sample")

    weights = recency_weights(n)
    weighted_mean = float(np.sum(values * weights) / np.sum(weights))

    # Population variance around the weighted mean
    variance = float(np.mean((values - weighted_mean) ** 2))
    cov = math.sqrt(variance) / weighted_mean

    return BaselineEstimate(
        baseline_value=round_half_up(weighted_mean, 2),
        confidence_score=confidence_score(n, cov),
        coefficient_of_variation=cov,
        sample_size=n,
    )


def compute_baseline(
    vehicle_id: str,
    trip_samples: Sequence[TripSample],
    now: Optional[datetime] = None,
    min_samples: int = MIN_SAMPLES,
    tolerance_percent: float = DEFAULT_TOLERANCE_PERCENT,
    vehicle_registration: Optional[str] = None,
) -> Union[Baseline, InsufficientSamples]:
    """
    Build a Baseline for one vehicle from its historical trips.

    Ineligible samples are dropped, the rest ordered by start date, filtered
    through the IQR fence and estimated.

    Returns:
        Baseline, or InsufficientSamples when fewer than min_samples survive
    """
    eligible = sorted(select_eligible(trip_samples), key=lambda s: s.start_date)
    filtered = filter_outliers_iqr(eligible, min_samples=min_samples, vehicle_id=vehicle_id)

    if isinstance(filtered, InsufficientSamples):
        logger.info(
            f"Insufficient trip data for {vehicle_id}: "
            f"need {filtered.required}, got {filtered.available}"
        )
        return filtered

    estimate = estimate_baseline(filtered)
    timestamp = now or utc_now()

    data_range = DataRange(
        start_date=filtered[0].start_date,
        end_date=filtered[-1].start_date,
        total_distance=round_half_up(sum(s.distance for s in filtered)),
        total_fuel=round_half_up(sum(s.fuel_quantity for s in filtered), 2),
        trip_count=len(filtered),
    )

    return Baseline(
        vehicle_id=vehicle_id,
        vehicle_registration=vehicle_registration,
        baseline_value=estimate.baseline_value,
        sample_size=estimate.sample_size,
        confidence_score=estimate.confidence_score,
        tolerance_upper_percent=tolerance_percent,
        tolerance_lower_percent=tolerance_percent,
        computed_at=timestamp,
        last_updated=timestamp,
        data_range=data_range,
    )
