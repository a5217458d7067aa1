"""
Outlier Filter - IQR fence over trip efficiency samples

Quartiles are taken by nearest rank at index floor(n * 0.25) and
floor(n * 0.75) of the sorted values, not by interpolation. Switching to an
interpolated quantile would change which trips are treated as outliers.
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from fleet_efficiency.models import InsufficientSamples, TripSample

logger = logging.getLogger(__name__)

MIN_SAMPLES = 10
IQR_MULTIPLIER = 1.5


def select_eligible(samples: Iterable[TripSample]) -> List[TripSample]:
    """Drop samples with non-positive efficiency, distance or fuel."""
    return [s for s in samples if s.is_eligible]


def quartile_fence(
    values: Sequence[float], multiplier: float = IQR_MULTIPLIER
) -> Tuple[float, float]:
    """
    Compute the inclusive [Q1 - k*IQR, Q3 + k*IQR] fence.

    Args:
        values: Efficiency values (any order)
        multiplier: IQR multiplier k

    Returns:
        (lower_bound, upper_bound)
    """
    ordered = np.sort(np.asarray(values, dtype=float))
    n = len(ordered)
    if n == 0:
        raise ValueError("Cannot compute a quartile fence over an empty sample")

    q1 = float(ordered[int(math.floor(n * 0.25))])
    q3 = float(ordered[int(math.floor(n * 0.75))])
    iqr = q3 - q1
    return q1 - multiplier * iqr, q3 + multiplier * iqr


def filter_outliers_iqr(
    samples: Sequence[TripSample],
    min_samples: int = MIN_SAMPLES,
    vehicle_id: Optional[str] = None,
    multiplier: float = IQR_MULTIPLIER,
) -> Union[List[TripSample], InsufficientSamples]:
    """
    Keep the samples whose efficiency lies inside the IQR fence.

    Input order is preserved. Callers are expected to pass eligible samples
    (see select_eligible).

    Returns:
        The retained samples, or InsufficientSamples when fewer than
        min_samples are available before or after filtering.
    """
    samples = list(samples)
    if len(samples) < min_samples:
        logger.debug(
            f"Outlier filter skipped for {vehicle_id}: {len(samples)} < {min_samples}"
        )
        return InsufficientSamples(
            vehicle_id=vehicle_id,
            required=min_samples,
            available=len(samples),
        )

    lower, upper = quartile_fence([s.efficiency_value for s in samples], multiplier)
    retained = [s for s in samples if lower <= s.efficiency_value <= upper]

    removed = len(samples) - len(retained)
    if removed:
        logger.debug(
            f"Removed {removed} outlier(s) for {vehicle_id} "
            f"(fence {lower:.2f}..{upper:.2f})"
        )

    if len(retained) < min_samples:
        return InsufficientSamples(
            vehicle_id=vehicle_id,
            required=min_samples,
            available=len(retained),
            reason="Insufficient trip data after outlier removal",
        )

    return retained
