"""
Efficiency Baseline Router
═══════════════════════════════════════════════════════════════════════════════

API endpoints for per-vehicle fuel efficiency baselines.

Endpoints:
- GET  /efficiency-baseline/status - Fleet baseline coverage
- POST /efficiency-baseline/establish-all - Establish baselines fleet-wide
- GET  /efficiency-baseline/trips/{trip_id}/deviation - One trip vs baseline
- GET  /efficiency-baseline/{vehicle_id} - Stored baseline for a vehicle
- POST /efficiency-baseline/{vehicle_id}/calculate - Compute and store a baseline
- GET  /efficiency-baseline/{vehicle_id}/analysis - 30/7 day trend analysis

Handlers are plain `def`: the repositories use blocking drivers, so FastAPI
runs them in its threadpool.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from errors import NotFoundError
from fleet_efficiency.config_helper import get_baseline_service
from fleet_efficiency.models import InsufficientSamples, StorageFailure
from fleet_efficiency.services import BaselineService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/fuelAnalytics/efficiency-baseline", tags=["Efficiency Baseline"]
)


# ═══════════════════════════════════════════════════════════════════════════════
# RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════════════════════


class DataRangeResponse(BaseModel):
    """Window a baseline was computed from"""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    total_distance: float
    total_fuel: float
    trip_count: int


class BaselineResponse(BaseModel):
    """Response model for a stored baseline"""

    vehicle_id: str
    vehicle_registration: Optional[str] = None
    baseline_value: float = Field(..., description="Baseline efficiency (distance per fuel unit)")
    sample_size: int = Field(..., description="Trips retained after outlier removal")
    confidence_score: int = Field(..., ge=0, le=100, description="Confidence 0-100")
    tolerance_upper_percent: float
    tolerance_lower_percent: float
    computed_at: Optional[str] = None
    last_updated: Optional[str] = None
    data_range: DataRangeResponse


class CoverageResponse(BaseModel):
    """Response model for fleet baseline coverage"""

    total_vehicles: int
    vehicles_with_baselines: int
    vehicles_needing_updates: int
    vehicles_with_recent_deviations: int
    avg_confidence_score: int
    baseline_coverage_percent: int = Field(..., description="0-100")


class BatchResultResponse(BaseModel):
    vehicle_id: str
    registration: Optional[str] = None
    status: str = Field(..., description="success, failed or skipped")
    reason: Optional[str] = None


class BatchEstablishmentResponse(BaseModel):
    """Response model for establish-all"""

    success: int
    failed: int
    skipped: int
    results: List[BatchResultResponse]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


def _raise_for_storage(result: StorageFailure):
    logger.error(f"Storage failure in {result.operation} for {result.vehicle_id}")
    raise HTTPException(status_code=503, detail=result.to_dict())


# ═══════════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/status", response_model=CoverageResponse)
def get_system_status(
    include_recent_deviations: bool = Query(
        False, description="Also count vehicles with recent out-of-band trips"
    ),
    service: BaselineService = Depends(get_baseline_service),
):
    """Fleet-wide baseline coverage and staleness."""
    return service.get_system_status(include_recent_deviations).to_dict()


@router.post("/establish-all", response_model=BatchEstablishmentResponse)
def establish_all_baselines(
    max_workers: Optional[int] = Query(None, ge=1, le=32),
    service: BaselineService = Depends(get_baseline_service),
):
    """
    Establish baselines for every vehicle lacking a current one.

    Vehicles with a recent, confident baseline are skipped. Safe to re-run.
    """
    report = service.establish_all_baselines(max_workers=max_workers)
    return report.to_dict()


@router.get("/trips/{trip_id}/deviation")
def analyze_trip_deviation(
    trip_id: str, service: BaselineService = Depends(get_baseline_service)
) -> Dict[str, Any]:
    """
    Compare one trip against its vehicle's baseline.

    Returns {"applicable": false, ...} when there is no baseline or the trip
    has no usable efficiency.
    """
    result = service.analyze_trip(trip_id)
    if isinstance(result, StorageFailure):
        _raise_for_storage(result)
    return result.to_dict()


@router.get("/{vehicle_id}", response_model=BaselineResponse)
def get_vehicle_baseline(
    vehicle_id: str, service: BaselineService = Depends(get_baseline_service)
):
    """Get the stored baseline for a vehicle."""
    baseline = service.get_baseline(vehicle_id)
    if baseline is None:
        raise NotFoundError("Baseline", vehicle_id)
    return baseline.to_dict()


@router.post("/{vehicle_id}/calculate", response_model=BaselineResponse)
def calculate_vehicle_baseline(
    vehicle_id: str, service: BaselineService = Depends(get_baseline_service)
):
    """
    Compute and store a baseline from the last 90 days of trips.

    422 when there are too few usable trips after outlier removal.
    """
    result = service.establish_baseline(vehicle_id)
    if isinstance(result, InsufficientSamples):
        raise HTTPException(status_code=422, detail=result.to_dict())
    if isinstance(result, StorageFailure):
        _raise_for_storage(result)
    return result.to_dict()


@router.get("/{vehicle_id}/analysis")
def analyze_vehicle(
    vehicle_id: str, service: BaselineService = Depends(get_baseline_service)
) -> Dict[str, Any]:
    """Baseline analysis: 30/7 day averages, trend, deviations, recommendations."""
    result = service.analyze_vehicle(vehicle_id)
    if isinstance(result, StorageFailure):
        _raise_for_storage(result)
    return result.to_dict()
