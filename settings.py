"""
Fleet Efficiency Settings
Centralized configuration from environment variables

All tunable thresholds for the efficiency baseline engine live here.
All sensitive data MUST come from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_env(key: str, default: str = "", required: bool = False) -> str:
    """Get environment variable with optional requirement enforcement."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set!")
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.getenv(key, str(default)))


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# =============================================================================
# DATABASE SETTINGS
# =============================================================================
@dataclass
class DatabaseSettings:
    """MySQL database configuration - ALL from environment."""

    host: str = field(default_factory=lambda: _get_env("MYSQL_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("MYSQL_PORT", 3306))
    user: str = field(default_factory=lambda: _get_env("MYSQL_USER", "fleet_admin"))
    password: str = field(default_factory=lambda: _get_env("MYSQL_PASSWORD", ""))
    database: str = field(
        default_factory=lambda: _get_env("MYSQL_DATABASE", "fleet_efficiency")
    )
    charset: str = "utf8mb4"

    # Connection pool (baseline store engine)
    pool_size: int = field(default_factory=lambda: _get_env_int("MYSQL_POOL_SIZE", 10))
    max_overflow: int = field(
        default_factory=lambda: _get_env_int("MYSQL_MAX_OVERFLOW", 5)
    )
    pool_recycle: int = field(
        default_factory=lambda: _get_env_int("MYSQL_POOL_RECYCLE", 1800)
    )

    def get_connection_dict(self) -> Dict:
        """Return connection dictionary for pymysql."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "charset": self.charset,
            "autocommit": True,
        }

    def get_sqlalchemy_url(self) -> str:
        """Return SQLAlchemy URL (mysql+pymysql driver)."""
        return (
            f"mysql+pymysql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}"
            f"?charset={self.charset}"
        )


# =============================================================================
# BASELINE ENGINE SETTINGS
# =============================================================================
@dataclass
class BaselineSettings:
    """Efficiency baseline, deviation and trend thresholds."""

    # Baseline computation
    min_samples: int = field(
        default_factory=lambda: _get_env_int("BASELINE_MIN_SAMPLES", 10)
    )
    lookback_days: int = field(
        default_factory=lambda: _get_env_int("BASELINE_LOOKBACK_DAYS", 90)
    )
    tolerance_percent: float = field(
        default_factory=lambda: _get_env_float("BASELINE_TOLERANCE_PCT", 15.0)
    )

    # Staleness
    stale_after_days: int = field(
        default_factory=lambda: _get_env_int("BASELINE_STALE_DAYS", 90)
    )
    min_confidence: int = field(
        default_factory=lambda: _get_env_int("BASELINE_MIN_CONFIDENCE", 60)
    )

    # Deviation severity
    high_deviation_percent: float = field(
        default_factory=lambda: _get_env_float("DEVIATION_HIGH_PCT", 25.0)
    )
    medium_deviation_percent: float = field(
        default_factory=lambda: _get_env_float("DEVIATION_MEDIUM_PCT", 15.0)
    )

    # Trend analysis
    trend_threshold_percent: float = field(
        default_factory=lambda: _get_env_float("TREND_THRESHOLD_PCT", 5.0)
    )
    trend_window_days: int = field(
        default_factory=lambda: _get_env_int("TREND_WINDOW_DAYS", 30)
    )
    trend_short_window_days: int = field(
        default_factory=lambda: _get_env_int("TREND_SHORT_WINDOW_DAYS", 7)
    )

    # Batch establishment
    batch_max_workers: int = field(
        default_factory=lambda: _get_env_int("BASELINE_BATCH_MAX_WORKERS", 4)
    )


# =============================================================================
# APPLICATION SETTINGS
# =============================================================================
@dataclass
class AppSettings:
    """General application settings."""

    debug: bool = field(default_factory=lambda: _get_env_bool("DEBUG", False))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_to_file: bool = field(
        default_factory=lambda: _get_env_bool("LOG_TO_FILE", False)
    )
    log_json: bool = field(default_factory=lambda: _get_env_bool("LOG_JSON", False))
    version: str = "1.0.0"


# =============================================================================
# GLOBAL SETTINGS INSTANCE
# =============================================================================
class Settings:
    """Global settings container - singleton pattern."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all settings."""
        self.database = DatabaseSettings()
        self.baseline = BaselineSettings()
        self.app = AppSettings()

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if not self.database.password:
            warnings.append("MYSQL_PASSWORD not set")

        if self.baseline.min_samples < 10:
            warnings.append(
                f"BASELINE_MIN_SAMPLES={self.baseline.min_samples} is below 10 - "
                "the baseline store rejects smaller samples"
            )

        if self.baseline.medium_deviation_percent > self.baseline.high_deviation_percent:
            warnings.append(
                "DEVIATION_MEDIUM_PCT is above DEVIATION_HIGH_PCT - "
                "medium severity will never be reported"
            )

        if self.baseline.batch_max_workers < 1:
            warnings.append("BASELINE_BATCH_MAX_WORKERS < 1 - batch will run serially")

        return warnings

    def to_dict(self) -> Dict:
        """Export settings as dictionary (for debugging, excludes secrets)."""
        return {
            "version": self.app.version,
            "debug": self.app.debug,
            "database_host": self.database.host,
            "database_name": self.database.database,
            "baseline_min_samples": self.baseline.min_samples,
            "baseline_lookback_days": self.baseline.lookback_days,
            "baseline_tolerance_percent": self.baseline.tolerance_percent,
            "baseline_stale_after_days": self.baseline.stale_after_days,
            "batch_max_workers": self.baseline.batch_max_workers,
        }


# Create global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get global settings instance."""
    return settings


# Export commonly used settings
DATABASE = settings.database
BASELINE = settings.baseline
APP = settings.app
