"""
Pytest Configuration for Fleet Efficiency Tests

Environment overrides are set BEFORE any project imports so the settings
singleton picks them up.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("MYSQL_PASSWORD", "test")

from unittest.mock import MagicMock

import pytest

# Import all fixtures
from tests.fixtures.database_fixtures import *  # noqa
from tests.fixtures.trip_fixtures import *  # noqa


@pytest.fixture
def mock_service():
    """BaselineService stand-in for API tests"""
    from fleet_efficiency.services import BaselineService

    return MagicMock(spec=BaselineService)


@pytest.fixture
def test_client(mock_service):
    """Provide a test client with the baseline service overridden."""
    from fastapi.testclient import TestClient

    from fleet_efficiency.config_helper import get_baseline_service
    from main import app

    app.dependency_overrides[get_baseline_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()
