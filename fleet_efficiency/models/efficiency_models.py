"""
Efficiency Baseline Data Models
===============================

Dataclasses and enums shared by the baseline engine, the repositories and
the API layer.

Expected outcomes (no baseline yet, not enough trips, store unavailable) are
modelled as result variants (InsufficientSamples, NotApplicable,
StorageFailure) rather than exceptions, so batch jobs can keep going after a
single vehicle fails.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fleet_efficiency.rounding import round_half_up


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class DeviationType(str, Enum):
    """Position of a trip relative to the tolerance band"""

    ABOVE_UPPER = "above_upper"
    BELOW_LOWER = "below_lower"
    WITHIN_RANGE = "within_range"


class Severity(str, Enum):
    """Deviation severity, from the absolute deviation percentage"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrendDirection(str, Enum):
    """30-day efficiency trend versus baseline"""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class BatchStatus(str, Enum):
    """Outcome of one vehicle in a batch establishment run"""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


# ══════════════════════════════════════════════════════════════════════════════
# INPUT RECORDS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Vehicle:
    """Vehicle identity as read from the fleet tables"""

    vehicle_id: str
    registration_number: Optional[str] = None


@dataclass(frozen=True)
class TripSample:
    """
    One historical trip used for baseline math.

    efficiency is distance per unit of fuel. When the source row carries a
    precomputed value it is used as-is, otherwise it is derived from
    distance / fuel_quantity.
    """

    trip_id: str
    start_date: datetime
    distance: float
    fuel_quantity: float
    efficiency: Optional[float] = None
    vehicle_id: Optional[str] = None
    trip_serial_number: Optional[str] = None

    @property
    def efficiency_value(self) -> float:
        if self.efficiency is not None:
            return float(self.efficiency)
        if self.fuel_quantity and self.fuel_quantity > 0:
            return self.distance / self.fuel_quantity
        return 0.0

    @property
    def is_eligible(self) -> bool:
        """Only positive efficiency, distance and fuel may feed a baseline"""
        return (
            self.efficiency_value > 0
            and self.distance is not None
            and self.distance > 0
            and self.fuel_quantity is not None
            and self.fuel_quantity > 0
        )


# ══════════════════════════════════════════════════════════════════════════════
# BASELINE
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DataRange:
    """Window of samples a baseline was computed from (informational)"""

    start_date: Optional[datetime]
    end_date: Optional[datetime]
    total_distance: float
    total_fuel: float
    trip_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "total_distance": self.total_distance,
            "total_fuel": self.total_fuel,
            "trip_count": self.trip_count,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DataRange":
        data = data or {}

        def _parse(value):
            if value is None or isinstance(value, datetime):
                return value
            return datetime.fromisoformat(value)

        return cls(
            start_date=_parse(data.get("start_date")),
            end_date=_parse(data.get("end_date")),
            total_distance=float(data.get("total_distance", 0) or 0),
            total_fuel=float(data.get("total_fuel", 0) or 0),
            trip_count=int(data.get("trip_count", 0) or 0),
        )


@dataclass(frozen=True)
class BaselineEstimate:
    """Raw output of the estimator, before it is wrapped into a Baseline"""

    baseline_value: float
    confidence_score: int
    coefficient_of_variation: float
    sample_size: int


@dataclass(frozen=True)
class Baseline:
    """Persisted per-vehicle efficiency baseline"""

    vehicle_id: str
    baseline_value: float
    sample_size: int
    confidence_score: int
    computed_at: datetime
    last_updated: datetime
    data_range: DataRange
    tolerance_upper_percent: float = 15.0
    tolerance_lower_percent: float = 15.0
    vehicle_registration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response"""
        return {
            "vehicle_id": self.vehicle_id,
            "vehicle_registration": self.vehicle_registration,
            "baseline_value": self.baseline_value,
            "sample_size": self.sample_size,
            "confidence_score": self.confidence_score,
            "tolerance_upper_percent": self.tolerance_upper_percent,
            "tolerance_lower_percent": self.tolerance_lower_percent,
            "computed_at": _iso(self.computed_at),
            "last_updated": _iso(self.last_updated),
            "data_range": self.data_range.to_dict(),
        }


# ══════════════════════════════════════════════════════════════════════════════
# DEVIATION
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class DeviationRecord:
    """Comparison of one trip against its vehicle's baseline"""

    trip_id: str
    vehicle_id: Optional[str]
    actual_efficiency: float
    baseline_value: float
    deviation_percent: float
    deviation_type: DeviationType
    severity: Severity
    trip_date: Optional[datetime] = None
    trip_serial_number: Optional[str] = None
    vehicle_registration: Optional[str] = None
    possible_causes: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trip_id": self.trip_id,
            "trip_serial_number": self.trip_serial_number,
            "vehicle_id": self.vehicle_id,
            "vehicle_registration": self.vehicle_registration,
            "trip_date": _iso(self.trip_date),
            "actual_efficiency": self.actual_efficiency,
            "baseline_value": self.baseline_value,
            "deviation_percent": round_half_up(self.deviation_percent, 2),
            "deviation_type": self.deviation_type.value,
            "severity": self.severity.value,
            "possible_causes": list(self.possible_causes),
            "recommendations": list(self.recommendations),
        }


# ══════════════════════════════════════════════════════════════════════════════
# RESULT VARIANTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InsufficientSamples:
    """Fewer eligible samples than required; defer baseline creation"""

    vehicle_id: Optional[str]
    required: int
    available: int
    reason: str = "Insufficient trip data"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "required": self.required,
            "available": self.available,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class NotApplicable:
    """A deviation check that cannot run (no baseline, unusable trip)"""

    reason: str
    vehicle_id: Optional[str] = None
    trip_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applicable": False,
            "reason": self.reason,
            "vehicle_id": self.vehicle_id,
            "trip_id": self.trip_id,
        }


@dataclass(frozen=True)
class StorageFailure:
    """Trip or baseline storage call failed; caller decides retry vs skip"""

    operation: str
    vehicle_id: Optional[str] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "vehicle_id": self.vehicle_id,
            "detail": self.detail,
        }


# ══════════════════════════════════════════════════════════════════════════════
# ROLLUPS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class TrendReport:
    """Per-vehicle baseline analysis over the recent trip window"""

    vehicle_id: str
    current_baseline: Optional[Baseline]
    avg_efficiency_30d: float
    avg_efficiency_7d: float
    deviation_from_baseline_30d: float
    deviation_from_baseline_7d: float
    trend_direction: TrendDirection
    needs_baseline_update: bool
    recent_deviations: List[DeviationRecord] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    vehicle_registration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "vehicle_registration": self.vehicle_registration,
            "current_baseline": (
                self.current_baseline.to_dict() if self.current_baseline else None
            ),
            "recent_deviations": [d.to_dict() for d in self.recent_deviations],
            "trend_analysis": {
                "last_30_days": {
                    "avg_efficiency": self.avg_efficiency_30d,
                    "deviation_from_baseline": self.deviation_from_baseline_30d,
                    "trend_direction": self.trend_direction.value,
                },
                "last_7_days": {
                    "avg_efficiency": self.avg_efficiency_7d,
                    "deviation_from_baseline": self.deviation_from_baseline_7d,
                },
            },
            "needs_baseline_update": self.needs_baseline_update,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class CoverageReport:
    """Fleet-wide baseline coverage"""

    total_vehicles: int
    vehicles_with_baselines: int
    vehicles_needing_updates: int
    vehicles_with_recent_deviations: int
    avg_confidence_score: int
    baseline_coverage_percent: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_vehicles": self.total_vehicles,
            "vehicles_with_baselines": self.vehicles_with_baselines,
            "vehicles_needing_updates": self.vehicles_needing_updates,
            "vehicles_with_recent_deviations": self.vehicles_with_recent_deviations,
            "avg_confidence_score": self.avg_confidence_score,
            "baseline_coverage_percent": self.baseline_coverage_percent,
        }


@dataclass(frozen=True)
class BatchResult:
    """One vehicle's line in a batch establishment report"""

    vehicle_id: str
    status: BatchStatus
    registration: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "registration": self.registration,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass
class BatchEstablishmentReport:
    """Summary of an establish-all run"""

    results: List[BatchResult] = field(default_factory=list)

    @property
    def success(self) -> int:
        return sum(1 for r in self.results if r.status == BatchStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == BatchStatus.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == BatchStatus.SKIPPED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
        }
