"""Repository layer for data access."""

from .baseline_repository import BaselineRepository, baselines_table
from .trip_repository import TripRepository, row_to_trip_sample

__all__ = [
    "BaselineRepository",
    "TripRepository",
    "baselines_table",
    "row_to_trip_sample",
]
