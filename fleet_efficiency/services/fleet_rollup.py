"""
Fleet Rollup - per-vehicle trend reports and fleet baseline coverage

A baseline needs an update when it is older than 90 days or its confidence
is below 60. A vehicle without a baseline always needs one.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Sequence

import numpy as np

from fleet_efficiency.models import (
    Baseline,
    CoverageReport,
    DeviationRecord,
    DeviationType,
    TrendDirection,
    TrendReport,
    TripSample,
)
from fleet_efficiency.rounding import round_half_up, round_half_up_int
from fleet_efficiency.services.deviation_classifier import (
    HIGH_DEVIATION_PERCENT,
    MEDIUM_DEVIATION_PERCENT,
    classify_deviation,
)
from fleet_efficiency.services.deviation_insights import (
    attach_insights,
    vehicle_recommendations,
)
from fleet_efficiency.timezone_utils import as_utc, utc_now

logger = logging.getLogger(__name__)

STALE_AFTER_DAYS = 90
MIN_CONFIDENCE_SCORE = 60
TREND_THRESHOLD_PERCENT = 5.0
TREND_WINDOW_DAYS = 30
SHORT_WINDOW_DAYS = 7


def is_baseline_stale(
    baseline: Baseline,
    now: Optional[datetime] = None,
    stale_after_days: int = STALE_AFTER_DAYS,
    min_confidence: int = MIN_CONFIDENCE_SCORE,
) -> bool:
    now = now or utc_now()
    age = as_utc(now) - as_utc(baseline.last_updated)
    return age > timedelta(days=stale_after_days) or baseline.confidence_score < min_confidence


def needs_baseline_update(
    baseline: Optional[Baseline],
    now: Optional[datetime] = None,
    stale_after_days: int = STALE_AFTER_DAYS,
    min_confidence: int = MIN_CONFIDENCE_SCORE,
) -> bool:
    if baseline is None:
        return True
    return is_baseline_stale(baseline, now, stale_after_days, min_confidence)


def _mean_efficiency(samples: Sequence[TripSample]) -> float:
    if not samples:
        return 0.0
    return float(np.mean([s.efficiency_value for s in samples]))


def _deviation_from_baseline(average: float, baseline: Optional[Baseline]) -> float:
    if baseline is None or baseline.baseline_value <= 0 or average <= 0:
        return 0.0
    return round_half_up(
        (average - baseline.baseline_value) / baseline.baseline_value * 100, 2
    )


def trend_direction(
    avg_efficiency: float,
    baseline: Optional[Baseline],
    threshold_percent: float = TREND_THRESHOLD_PERCENT,
) -> TrendDirection:
    """Stable unless the average is more than threshold% off baseline."""
    if baseline is None or baseline.baseline_value <= 0 or avg_efficiency <= 0:
        return TrendDirection.STABLE

    deviation = (avg_efficiency - baseline.baseline_value) / baseline.baseline_value * 100
    if abs(deviation) > threshold_percent:
        return TrendDirection.IMPROVING if deviation > 0 else TrendDirection.DECLINING
    return TrendDirection.STABLE


def rollup_vehicle(
    vehicle_id: str,
    recent_samples: Sequence[TripSample],
    baseline: Optional[Baseline],
    now: Optional[datetime] = None,
    vehicle_registration: Optional[str] = None,
    window_days: int = TREND_WINDOW_DAYS,
    short_window_days: int = SHORT_WINDOW_DAYS,
    trend_threshold_percent: float = TREND_THRESHOLD_PERCENT,
    stale_after_days: int = STALE_AFTER_DAYS,
    min_confidence: int = MIN_CONFIDENCE_SCORE,
    high_deviation_percent: float = HIGH_DEVIATION_PERCENT,
    medium_deviation_percent: float = MEDIUM_DEVIATION_PERCENT,
) -> TrendReport:
    """
    Build the trend report for one vehicle.

    Args:
        vehicle_id: Vehicle identifier
        recent_samples: Trips from (at least) the last window_days
        baseline: Stored baseline, or None
        now: Reference time for the trailing windows

    Returns:
        TrendReport with 30/7 day averages, trend, update flag,
        out-of-band deviations and recommendations
    """
    now = as_utc(now or utc_now())
    window_start = now - timedelta(days=window_days)
    short_window_start = now - timedelta(days=short_window_days)

    window = [
        s
        for s in recent_samples
        if s.efficiency_value > 0 and as_utc(s.start_date) >= window_start
    ]
    short_window = [s for s in window if as_utc(s.start_date) >= short_window_start]

    avg_30d = _mean_efficiency(window)
    avg_7d = _mean_efficiency(short_window)

    recent_deviations: List[DeviationRecord] = []
    if baseline is not None:
        for sample in window:
            result = classify_deviation(
                sample, baseline, high_deviation_percent, medium_deviation_percent
            )
            if (
                isinstance(result, DeviationRecord)
                and result.deviation_type != DeviationType.WITHIN_RANGE
            ):
                recent_deviations.append(attach_insights(result))

    trend = trend_direction(avg_30d, baseline, trend_threshold_percent)
    needs_update = needs_baseline_update(baseline, now, stale_after_days, min_confidence)

    return TrendReport(
        vehicle_id=vehicle_id,
        vehicle_registration=vehicle_registration
        or (baseline.vehicle_registration if baseline else None),
        current_baseline=baseline,
        avg_efficiency_30d=round_half_up(avg_30d, 2),
        avg_efficiency_7d=round_half_up(avg_7d, 2),
        deviation_from_baseline_30d=_deviation_from_baseline(avg_30d, baseline),
        deviation_from_baseline_7d=_deviation_from_baseline(avg_7d, baseline),
        trend_direction=trend,
        needs_baseline_update=needs_update,
        recent_deviations=recent_deviations,
        recommendations=vehicle_recommendations(
            baseline, recent_deviations, trend, needs_update
        ),
    )


def rollup_fleet(
    all_vehicle_baselines: Mapping[str, Optional[Baseline]],
    now: Optional[datetime] = None,
    vehicles_with_recent_deviations: int = 0,
    stale_after_days: int = STALE_AFTER_DAYS,
    min_confidence: int = MIN_CONFIDENCE_SCORE,
) -> CoverageReport:
    """
    Summarize baseline coverage across the fleet.

    Args:
        all_vehicle_baselines: Every active vehicle id mapped to its
            baseline, or None when it has none
        vehicles_with_recent_deviations: Precomputed by the caller, since it
            needs trip data this function does not see

    Returns:
        CoverageReport
    """
    now = now or utc_now()
    total = len(all_vehicle_baselines)
    baselines = [b for b in all_vehicle_baselines.values() if b is not None]

    needing_updates = sum(
        1 for b in baselines if is_baseline_stale(b, now, stale_after_days, min_confidence)
    )
    avg_confidence = (
        sum(b.confidence_score for b in baselines) / len(baselines) if baselines else 0
    )
    coverage = len(baselines) / total * 100 if total > 0 else 0

    return CoverageReport(
        total_vehicles=total,
        vehicles_with_baselines=len(baselines),
        vehicles_needing_updates=needing_updates,
        vehicles_with_recent_deviations=vehicles_with_recent_deviations,
        avg_confidence_score=round_half_up_int(avg_confidence),
        baseline_coverage_percent=round_half_up_int(coverage),
    )
