"""Service layer: baseline math, deviation classification and rollups."""

from .baseline_estimator import compute_baseline, confidence_score, estimate_baseline
from .baseline_service import BaselineService
from .deviation_classifier import classify_deviation
from .deviation_insights import attach_insights, vehicle_recommendations
from .fleet_rollup import needs_baseline_update, rollup_fleet, rollup_vehicle
from .outlier_filter import filter_outliers_iqr

__all__ = [
    "BaselineService",
    "attach_insights",
    "classify_deviation",
    "compute_baseline",
    "confidence_score",
    "estimate_baseline",
    "filter_outliers_iqr",
    "needs_baseline_update",
    "rollup_fleet",
    "rollup_vehicle",
    "vehicle_recommendations",
]
