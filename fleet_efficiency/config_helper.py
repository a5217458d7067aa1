"""
Configuration helper for the repository / service layers

Bridges settings.py with the repository/service pattern.

Usage:
    from fleet_efficiency.config_helper import get_db_config, create_repositories

    db_config = get_db_config()
    repos = create_repositories(db_config)
    services = create_services(repos)
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from settings import DATABASE, get_settings

logger = logging.getLogger(__name__)


def get_db_config() -> Dict[str, Any]:
    """
    Get MySQL connection config in format expected by repositories.

    Returns:
        Dict with keys: host, port, user, password, database, charset
    """
    return {
        "host": DATABASE.host,
        "port": DATABASE.port,
        "user": DATABASE.user,
        "password": DATABASE.password,
        "database": DATABASE.database,
        "charset": DATABASE.charset,
    }


def create_baseline_engine(url: Optional[str] = None) -> Engine:
    """
    Create the SQLAlchemy engine backing the baseline store.

    Pool Configuration:
    - pool_size / max_overflow from MYSQL_POOL_SIZE / MYSQL_MAX_OVERFLOW
    - pool_recycle: recycle connections before MySQL's wait_timeout
    - pool_pre_ping: Test connection before use
    """
    url = url or DATABASE.get_sqlalchemy_url()

    if url.startswith("sqlite"):
        return create_engine(url, echo=False)

    logger.info("Creating baseline store engine with connection pool")
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=DATABASE.pool_size,
        max_overflow=DATABASE.max_overflow,
        pool_timeout=30,
        pool_recycle=DATABASE.pool_recycle,
        pool_pre_ping=True,
        echo=False,
    )


def create_repositories(
    db_config: Dict[str, Any] = None, engine: Optional[Engine] = None
) -> Dict[str, Any]:
    """
    Create all repository instances with proper configuration.

    Args:
        db_config: Optional DB config. If None, uses get_db_config()
        engine: Optional baseline store engine. If None, one is created

    Returns:
        Dict with repository instances:
        {
            'trip': TripRepository,
            'baseline': BaselineRepository,
        }
    """
    from fleet_efficiency.repositories import BaselineRepository, TripRepository

    if db_config is None:
        db_config = get_db_config()
    if engine is None:
        engine = create_baseline_engine()

    return {
        "trip": TripRepository(db_config),
        "baseline": BaselineRepository(engine),
    }


def create_services(repositories: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create all service instances with injected repositories.

    Returns:
        Dict with service instances:
        {
            'baseline': BaselineService,
        }
    """
    from fleet_efficiency.services import BaselineService

    return {
        "baseline": BaselineService(
            trip_repo=repositories["trip"],
            baseline_repo=repositories["baseline"],
            config=get_settings().baseline,
        ),
    }


@lru_cache(maxsize=1)
def get_baseline_service():
    """Process-wide BaselineService (FastAPI dependency)."""
    return create_services(create_repositories())["baseline"]
