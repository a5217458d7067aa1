"""Data models for the efficiency baseline engine."""

from .efficiency_models import (
    Baseline,
    BaselineEstimate,
    BatchEstablishmentReport,
    BatchResult,
    BatchStatus,
    CoverageReport,
    DataRange,
    DeviationRecord,
    DeviationType,
    InsufficientSamples,
    NotApplicable,
    Severity,
    StorageFailure,
    TrendDirection,
    TrendReport,
    TripSample,
    Vehicle,
)

__all__ = [
    "Baseline",
    "BaselineEstimate",
    "BatchEstablishmentReport",
    "BatchResult",
    "BatchStatus",
    "CoverageReport",
    "DataRange",
    "DeviationRecord",
    "DeviationType",
    "InsufficientSamples",
    "NotApplicable",
    "Severity",
    "StorageFailure",
    "TrendDirection",
    "TrendReport",
    "TripSample",
    "Vehicle",
]
