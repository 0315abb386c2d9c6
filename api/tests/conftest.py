"""Pytest configuration and shared fixtures for the Hospital Records API tests."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hospital_api.main import create_app


# Disable logging for cleaner test output
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("asyncpg").setLevel(logging.WARNING)


class MockContextManager:
    """Async context manager standing in for ``pool.acquire()`` and ``conn.transaction()``."""

    def __init__(self, value=None):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


@pytest.fixture
def mock_db_pool():
    """Mock asyncpg pool and connection for repository tests."""
    pool = MagicMock()
    conn = AsyncMock()
    conn.transaction = MagicMock(return_value=MockContextManager())
    pool.acquire.return_value = MockContextManager(conn)
    return pool, conn


@pytest.fixture
def app() -> FastAPI:
    """Create FastAPI application instance for testing."""
    return create_app()


@pytest.fixture
def test_client(app: FastAPI) -> TestClient:
    """Create test client for API testing.

    Not used as a context manager, so the lifespan (and its database
    connection) does not run.
    """
    return TestClient(app)


@pytest.fixture
def json_headers() -> Dict[str, str]:
    """Standard JSON headers for API requests."""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }


# Sample data fixtures
@pytest.fixture
def sample_patient_row() -> Dict[str, Any]:
    """A ``person`` row as returned by asyncpg."""
    now = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    return {
        "person_id": 123,
        "user_id": None,
        "first_name": "Jane",
        "last_name": "Doe",
        "gender_concept_id": 8532,
        "year_of_birth": 1985,
        "month_of_birth": 4,
        "day_of_birth": 12,
        "birth_datetime": None,
        "mrn": "MRN-2024-000123",
        "contact_phone": "+66-2-000-0000",
        "contact_email": "jane@example.com",
        "created_at": now,
        "updated_at": now
    }


@pytest.fixture
def sample_visit_row() -> Dict[str, Any]:
    """A ``visit_occurrence`` row as returned by asyncpg."""
    now = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    return {
        "visit_occurrence_id": 987,
        "person_id": 123,
        "visit_concept_id": 9201,
        "visit_start": now,
        "visit_end": now + timedelta(hours=1),
        "visit_type": "OPD",
        "department_id": 5,
        "provider_id": None,
        "reason": "Routine checkup",
        "visit_number": "V-2024-000987",
        "created_at": now,
        "updated_at": now
    }


@pytest.fixture
def sample_document_row() -> Dict[str, Any]:
    """A ``document`` row as returned by asyncpg."""
    return {
        "document_id": uuid4(),
        "owner_user_id": uuid4(),
        "patient_person_id": 123,
        "file_path": "documents/2024/01/lab-result.pdf",
        "file_name": "lab-result.pdf",
        "content_type": "application/pdf",
        "size_bytes": 20480,
        "uploaded_by": None,
        "uploaded_at": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        "deleted_at": None
    }


@pytest.fixture
def visit_rows_same_timestamp(sample_visit_row: Dict[str, Any]) -> List[Dict[str, Any]]:
    """25 visits sharing one ``created_at``, newest id first."""
    return [
        {**sample_visit_row, "visit_occurrence_id": visit_id, "visit_number": f"V-2024-{visit_id:06d}"}
        for visit_id in range(25, 0, -1)
    ]


# Pytest markers for test categorization
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, mocked)")
    config.addinivalue_line("markers", "integration: API tests through the HTTP layer (repositories mocked)")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
