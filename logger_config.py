"""
Logging Configuration for the Fleet Efficiency Backend
Console logging with colors, optional JSON output and rotating log files
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

LOGS_DIR = Path(__file__).parent / "logs"

# LogRecord attributes that are not user-supplied "extra" fields
_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "exc_info",
    "exc_text",
    "thread",
    "threadName",
    "taskName",
    "message",
    "asctime",
}


class ColoredFormatter(logging.Formatter):
    """Colored console formatter"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        original = record.levelname
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for log aggregation.

    Output format:
    {
        "timestamp": "2026-10-18T12:00:00+00:00",
        "level": "INFO",
        "logger": "fleet_efficiency.services.baseline_service",
        "message": "Stored baseline",
        "vehicle_id": "V-001"
    }
    """

    SENSITIVE_FIELDS = {"password", "token", "secret", "api_key", "authorization"}

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if key.lower() in self.SENSITIVE_FIELDS:
                log_entry[key] = "***MASKED***"
            else:
                log_entry[key] = self._serialize_value(value)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_entry, default=str)

    @staticmethod
    def _serialize_value(value):
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, (list, tuple, dict)):
            return value
        return str(value)


def setup_logging(
    name: str = "fleet_efficiency",
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    json_format: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Setup logging with rotation and a separate error log

    Args:
        name: Logger name
        level: Logging level
        log_to_file: Enable file logging
        log_to_console: Enable console logging
        json_format: Emit JSON lines instead of the human format
        log_dir: Directory for log files (defaults to ./logs)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers = []

    file_formatter = (
        JSONFormatter()
        if json_format
        else logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console_formatter = (
        JSONFormatter()
        if json_format
        else ColoredFormatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    if log_to_file:
        target_dir = log_dir or LOGS_DIR
        target_dir.mkdir(parents=True, exist_ok=True)

        # Main rotating log file (10MB max, keep 5 backups)
        main_handler = RotatingFileHandler(
            target_dir / f"{name}.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        main_handler.setLevel(level)
        main_handler.setFormatter(file_formatter)
        logger.addHandler(main_handler)

        # Error log file (only ERROR and CRITICAL)
        error_handler = RotatingFileHandler(
            target_dir / f"{name}_errors.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        logger.addHandler(error_handler)

        # Daily rotating log
        daily_handler = TimedRotatingFileHandler(
            target_dir / f"{name}_daily.log",
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        daily_handler.setLevel(level)
        daily_handler.setFormatter(file_formatter)
        logger.addHandler(daily_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get or create a logger with standard configuration"""
    return setup_logging(name, level)
