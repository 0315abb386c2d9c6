"""Unit tests for patient database operations."""

import base64

import pytest
from unittest.mock import patch

import asyncpg

from hospital_api.models.patients import Patient, PatientListResponse
from hospital_api.db.patients import list_patients, get_patient
from hospital_api.pagination import PaginationOptions, decode_cursor, encode_cursor
from hospital_api.errors.problem_details import NotFoundError, InternalServerError


class TestPatientDatabase:
    """Test patient database operations."""

    @pytest.mark.asyncio
    async def test_list_patients_first_page(self, mock_db_pool, sample_patient_row):
        pool, conn = mock_db_pool
        conn.fetch.return_value = [sample_patient_row]

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            page = await list_patients(PaginationOptions(limit=20))

        assert [patient.person_id for patient in page.items] == [123]
        assert isinstance(page.items[0], Patient)
        assert page.next_cursor is None

        query, *params = conn.fetch.call_args.args
        assert "ORDER BY person_id DESC" in query
        assert params == [21]

    @pytest.mark.asyncio
    async def test_list_patients_search_and_gender(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch.return_value = []

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            await list_patients(PaginationOptions(limit=10), search=" doe ", gender_concept_id=8532)

        query, *params = conn.fetch.call_args.args
        assert "ILIKE $1" in query
        assert "mrn ILIKE $1" in query
        assert "gender_concept_id = $2" in query
        assert params == ["%doe%", 8532, 11]

    @pytest.mark.asyncio
    async def test_list_patients_single_field_cursor(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch.return_value = []

        async def mock_get_pool():
            return pool

        cursor = encode_cursor({"person_id": 500})
        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            await list_patients(PaginationOptions(limit=10, cursor=cursor))

        query, *params = conn.fetch.call_args.args
        assert "person_id < $1" in query
        assert params == [500, 11]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [b'{"person_id": Infinity}', b'{"person_id": 1e400}'])
    async def test_list_patients_non_finite_cursor_restarts(self, mock_db_pool, payload):
        pool, conn = mock_db_pool
        conn.fetch.return_value = []
        cursor = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            page = await list_patients(PaginationOptions(limit=5, cursor=cursor))

        query, *params = conn.fetch.call_args.args
        assert "person_id <" not in query
        assert params == [6]
        assert page.items == []

    @pytest.mark.asyncio
    async def test_list_patients_next_cursor(self, mock_db_pool, sample_patient_row):
        pool, conn = mock_db_pool
        conn.fetch.return_value = [
            {**sample_patient_row, "person_id": person_id} for person_id in (30, 20, 10)
        ]

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            page = await list_patients(PaginationOptions(limit=2))

        assert [patient.person_id for patient in page.items] == [30, 20]
        assert decode_cursor(page.next_cursor) == {"person_id": 20}

        body = PatientListResponse.from_page(page).model_dump(mode="json", by_alias=True)
        assert body["nextCursor"] == page.next_cursor
        assert len(body["items"]) == 2

    @pytest.mark.asyncio
    async def test_list_patients_database_error(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch.side_effect = asyncpg.PostgresError("Database error")

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            with pytest.raises(InternalServerError):
                await list_patients(PaginationOptions(limit=5))

    @pytest.mark.asyncio
    async def test_get_patient_success(self, mock_db_pool, sample_patient_row):
        pool, conn = mock_db_pool
        conn.fetchrow.return_value = sample_patient_row

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            patient = await get_patient(123)

        assert patient.mrn == "MRN-2024-000123"
        assert patient.first_name == "Jane"

    @pytest.mark.asyncio
    async def test_get_patient_not_found(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetchrow.return_value = None

        async def mock_get_pool():
            return pool

        with patch('hospital_api.db.patients.get_db_pool', side_effect=mock_get_pool):
            with pytest.raises(NotFoundError, match="Patient 404"):
                await get_patient(404)
