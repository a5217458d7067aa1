"""
Database fixtures for testing
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool


@pytest.fixture
def mock_db_connection():
    """Mock pymysql connection with a context-managed cursor"""
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value.__enter__.return_value = mock_cursor
    mock_cursor.fetchall.return_value = []
    mock_cursor.fetchone.return_value = None
    mock_cursor.rowcount = 0
    return mock_conn


@pytest.fixture
def db_config():
    return {
        "host": "localhost",
        "port": 3306,
        "user": "test",
        "password": "test",
        "database": "fleet_test",
        "charset": "utf8mb4",
    }


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across connections"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def baseline_repo(sqlite_engine):
    """BaselineRepository over a fresh SQLite table"""
    from fleet_efficiency.repositories import BaselineRepository

    repo = BaselineRepository(sqlite_engine)
    repo.create_table()
    return repo
