"""
FastAPI Backend for the Fleet Efficiency API

Hosts the efficiency baseline endpoints. All state lives in MySQL; the
process itself holds only the connection pool.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from errors import register_exception_handlers
from logger_config import setup_logging
from routers import include_all_routers
from settings import settings

logger = logging.getLogger(__name__)

# Loggers that get handlers; module loggers below them propagate up
APP_LOGGERS = ("fleet_efficiency", "routers", "errors", __name__)


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def configure_logging():
    level = getattr(logging, settings.app.log_level.upper(), logging.INFO)
    for name in APP_LOGGERS:
        setup_logging(
            name,
            level=level,
            log_to_file=settings.app.log_to_file,
            json_format=settings.app.log_json,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown tasks."""
    configure_logging()
    logger.info(f"Fleet Efficiency API v{settings.app.version} starting...")

    for warning in settings.validate():
        logger.warning(f"Configuration: {warning}")

    logger.info("API ready for connections")

    yield  # App runs here

    logger.info("Shutting down Fleet Efficiency API")


app = FastAPI(
    title="Fleet Efficiency API",
    description="Per-vehicle fuel efficiency baselines and trip deviation detection.",
    version=settings.app.version,
    lifespan=lifespan,
)

register_exception_handlers(app)
include_all_routers(app)


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe. Does not touch the database."""
    return {
        "status": "healthy",
        "version": settings.app.version,
        "timestamp": utc_now().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app.debug,
        log_level=settings.app.log_level.lower(),
    )
