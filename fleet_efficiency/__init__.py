"""Fleet fuel-efficiency baselines, trip deviation detection and rollups."""

__version__ = "1.0.0"
