"""
Baseline Service - wires trip reads and baseline storage to the numeric core

Operations:
- calculate / store / get / establish a vehicle baseline
- analyze one trip against its vehicle's baseline
- analyze one vehicle's recent performance
- fleet-wide baseline status
- establish baselines for every vehicle that needs one (bounded parallelism)

Storage failures are turned into StorageFailure results on the operations
that return results, so one bad vehicle never stops a batch. Nothing is
retried here.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Union

from errors import BaselineStorageError, NotFoundError
from fleet_efficiency.models import (
    Baseline,
    BatchEstablishmentReport,
    BatchResult,
    BatchStatus,
    CoverageReport,
    DeviationRecord,
    InsufficientSamples,
    NotApplicable,
    StorageFailure,
    TrendReport,
    Vehicle,
)
from fleet_efficiency.repositories import BaselineRepository, TripRepository
from fleet_efficiency.services.baseline_estimator import compute_baseline
from fleet_efficiency.services.deviation_classifier import classify_deviation
from fleet_efficiency.services.deviation_insights import attach_insights
from fleet_efficiency.services.fleet_rollup import (
    is_baseline_stale,
    rollup_fleet,
    rollup_vehicle,
)
from fleet_efficiency.timezone_utils import utc_now
from settings import BaselineSettings, get_settings

logger = logging.getLogger(__name__)


def _storage_failure(error: BaselineStorageError) -> StorageFailure:
    return StorageFailure(
        operation=error.operation,
        vehicle_id=error.vehicle_id,
        detail=error.details.get("cause", error.message),
    )


class BaselineService:
    """
    Efficiency baseline service.

    Usage:
        service = BaselineService(trip_repo, baseline_repo)

        result = service.establish_baseline("V-001")
        if isinstance(result, Baseline):
            print(result.baseline_value, result.confidence_score)

        report = service.establish_all_baselines()
        print(report.success, report.failed, report.skipped)
    """

    def __init__(
        self,
        trip_repo: TripRepository,
        baseline_repo: BaselineRepository,
        config: Optional[BaselineSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            trip_repo: Trip / vehicle reader
            baseline_repo: Baseline key-value store
            config: Thresholds (defaults to global settings)
            clock: Returns "now" as aware UTC datetime
        """
        self.trip_repo = trip_repo
        self.baseline_repo = baseline_repo
        self.config = config or get_settings().baseline
        self.clock = clock
        logger.info("BaselineService initialized")

    # ------------------------------------------------------------------
    # Single vehicle
    # ------------------------------------------------------------------

    def _resolve_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = self.trip_repo.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)
        return vehicle

    def _calculate(self, vehicle: Vehicle) -> Union[Baseline, InsufficientSamples]:
        now = self.clock()
        since = now - timedelta(days=self.config.lookback_days)
        trips = self.trip_repo.get_vehicle_trips(vehicle.vehicle_id, since=since)
        return compute_baseline(
            vehicle.vehicle_id,
            trips,
            now=now,
            min_samples=self.config.min_samples,
            tolerance_percent=self.config.tolerance_percent,
            vehicle_registration=vehicle.registration_number,
        )

    def calculate_baseline(
        self, vehicle_id: str
    ) -> Union[Baseline, InsufficientSamples, StorageFailure]:
        """
        Compute (without storing) a baseline from the lookback window.

        Raises:
            NotFoundError: Unknown or deleted vehicle
        """
        try:
            vehicle = self._resolve_vehicle(vehicle_id)
            return self._calculate(vehicle)
        except BaselineStorageError as e:
            logger.warning(f"Could not calculate baseline for {vehicle_id}: {e.message}")
            return _storage_failure(e)

    def store_baseline(self, baseline: Baseline) -> Union[Baseline, StorageFailure]:
        try:
            return self.baseline_repo.upsert(baseline)
        except BaselineStorageError as e:
            logger.warning(f"Could not store baseline for {baseline.vehicle_id}: {e.message}")
            return _storage_failure(e)

    def get_baseline(self, vehicle_id: str) -> Optional[Baseline]:
        """
        Raises:
            BaselineStorageError: Store unavailable
        """
        return self.baseline_repo.get(vehicle_id)

    def establish_baseline(
        self, vehicle_id: str
    ) -> Union[Baseline, InsufficientSamples, StorageFailure]:
        """Compute and store a baseline for one vehicle."""
        result = self.calculate_baseline(vehicle_id)
        if isinstance(result, Baseline):
            return self.store_baseline(result)
        return result

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_trip(
        self, trip_id: str
    ) -> Union[DeviationRecord, NotApplicable, StorageFailure]:
        """Classify one trip against its vehicle's stored baseline."""
        try:
            trip = self.trip_repo.get_trip(trip_id)
            if trip is None:
                return NotApplicable(reason="Trip not found", trip_id=trip_id)
            if trip.efficiency_value <= 0:
                return NotApplicable(
                    reason="Trip has no efficiency value",
                    vehicle_id=trip.vehicle_id,
                    trip_id=trip_id,
                )
            baseline = self.baseline_repo.get(trip.vehicle_id)
        except BaselineStorageError as e:
            return _storage_failure(e)

        result = classify_deviation(
            trip,
            baseline,
            high_threshold=self.config.high_deviation_percent,
            medium_threshold=self.config.medium_deviation_percent,
        )
        if isinstance(result, DeviationRecord):
            return attach_insights(result)
        return result

    def _recent_trips(self, vehicle_id: str, now: datetime):
        since = now - timedelta(days=self.config.trend_window_days)
        return self.trip_repo.get_vehicle_trips(vehicle_id, since=since)

    def _rollup(self, vehicle: Vehicle, baseline: Optional[Baseline], now: datetime) -> TrendReport:
        return rollup_vehicle(
            vehicle.vehicle_id,
            self._recent_trips(vehicle.vehicle_id, now),
            baseline,
            now=now,
            vehicle_registration=vehicle.registration_number,
            window_days=self.config.trend_window_days,
            short_window_days=self.config.trend_short_window_days,
            trend_threshold_percent=self.config.trend_threshold_percent,
            stale_after_days=self.config.stale_after_days,
            min_confidence=self.config.min_confidence,
            high_deviation_percent=self.config.high_deviation_percent,
            medium_deviation_percent=self.config.medium_deviation_percent,
        )

    def analyze_vehicle(self, vehicle_id: str) -> Union[TrendReport, StorageFailure]:
        """
        Trend report for one vehicle over the recent trip window.

        Raises:
            NotFoundError: Unknown or deleted vehicle
        """
        try:
            vehicle = self._resolve_vehicle(vehicle_id)
            baseline = self.baseline_repo.get(vehicle_id)
            return self._rollup(vehicle, baseline, self.clock())
        except BaselineStorageError as e:
            logger.warning(f"Could not analyze {vehicle_id}: {e.message}")
            return _storage_failure(e)

    # ------------------------------------------------------------------
    # Fleet
    # ------------------------------------------------------------------

    def get_system_status(self, include_recent_deviations: bool = False) -> CoverageReport:
        """
        Fleet-wide baseline coverage.

        Only active vehicles count; baselines of deleted vehicles are ignored.

        Raises:
            BaselineStorageError: Store unavailable
        """
        now = self.clock()
        vehicles = self.trip_repo.list_vehicles()
        stored: Dict[str, Baseline] = {b.vehicle_id: b for b in self.baseline_repo.list_all()}
        by_vehicle = {v.vehicle_id: stored.get(v.vehicle_id) for v in vehicles}

        with_deviations = 0
        if include_recent_deviations:
            for vehicle in vehicles:
                baseline = by_vehicle[vehicle.vehicle_id]
                if baseline is None:
                    continue
                if self._rollup(vehicle, baseline, now).recent_deviations:
                    with_deviations += 1

        return rollup_fleet(
            by_vehicle,
            now=now,
            vehicles_with_recent_deviations=with_deviations,
            stale_after_days=self.config.stale_after_days,
            min_confidence=self.config.min_confidence,
        )

    def _establish_for(self, vehicle: Vehicle) -> BatchResult:
        vehicle_id = vehicle.vehicle_id
        registration = vehicle.registration_number

        try:
            existing = self.baseline_repo.get(vehicle_id)
            if existing is not None and not is_baseline_stale(
                existing,
                self.clock(),
                self.config.stale_after_days,
                self.config.min_confidence,
            ):
                return BatchResult(
                    vehicle_id, BatchStatus.SKIPPED, registration, "Recent baseline exists"
                )

            result = self._calculate(vehicle)
            if isinstance(result, InsufficientSamples):
                return BatchResult(vehicle_id, BatchStatus.FAILED, registration, result.reason)

            self.baseline_repo.upsert(result)
            return BatchResult(vehicle_id, BatchStatus.SUCCESS, registration)

        except BaselineStorageError as e:
            logger.warning(f"Baseline establishment failed for {vehicle_id}: {e.message}")
            return BatchResult(vehicle_id, BatchStatus.FAILED, registration, e.message)

    def establish_all_baselines(
        self, max_workers: Optional[int] = None
    ) -> BatchEstablishmentReport:
        """
        Establish baselines for every vehicle lacking a current one.

        Vehicles are independent, so they run on a bounded thread pool.
        Results keep the vehicle listing order. Safe to re-run.

        Raises:
            BaselineStorageError: The vehicle listing itself failed
        """
        vehicles: List[Vehicle] = self.trip_repo.list_vehicles()
        workers = max(1, max_workers or self.config.batch_max_workers)

        if workers == 1 or len(vehicles) <= 1:
            results = [self._establish_for(v) for v in vehicles]
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="baseline"
            ) as executor:
                results = list(executor.map(self._establish_for, vehicles))

        report = BatchEstablishmentReport(results=results)
        logger.info(
            f"Baseline batch complete: {report.success} success, "
            f"{report.failed} failed, {report.skipped} skipped"
        )
        return report
