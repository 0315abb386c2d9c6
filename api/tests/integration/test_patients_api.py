"""API tests for patient endpoints."""

from unittest.mock import AsyncMock, patch

import pytest

from hospital_api.errors.problem_details import InternalServerError, NotFoundError
from hospital_api.models.patients import Patient
from hospital_api.pagination import Page, encode_cursor


@pytest.fixture
def patient(sample_patient_row) -> Patient:
    return Patient.model_validate(sample_patient_row)


class TestPatientsApi:
    """Test /v1/patients endpoints."""

    def test_list_patients(self, test_client, patient):
        cursor = encode_cursor({"person_id": 123})
        mock_list = AsyncMock(return_value=Page(items=[patient], next_cursor=cursor, has_more=True))

        with patch("hospital_api.routes.patients.list_patients", new=mock_list):
            response = test_client.get("/v1/patients", params={"search": "Jane Doe", "limit": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["items"][0]["mrn"] == "MRN-2024-000123"
        assert body["nextCursor"] == cursor
        assert "search=Jane+Doe" in response.headers["Link"]

        assert mock_list.call_args.kwargs == {"search": "Jane Doe", "gender_concept_id": None}
        assert mock_list.call_args.args[0].limit == 1

    def test_list_patients_passes_cursor(self, test_client):
        cursor = encode_cursor({"person_id": 50})
        mock_list = AsyncMock(return_value=Page(items=[]))

        with patch("hospital_api.routes.patients.list_patients", new=mock_list):
            response = test_client.get(f"/v1/patients?cursor={cursor}&gender_concept_id=8507")

        assert response.status_code == 200
        assert response.json() == {"items": []}
        assert mock_list.call_args.args[0].cursor == cursor
        assert mock_list.call_args.kwargs["gender_concept_id"] == 8507

    def test_list_patients_database_failure(self, test_client):
        error = InternalServerError("Database error: connection reset")

        with patch("hospital_api.routes.patients.list_patients", new=AsyncMock(side_effect=error)):
            response = test_client.get("/v1/patients")

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/problem+json"

    def test_get_patient(self, test_client, patient):
        with patch("hospital_api.routes.patients.get_patient", new=AsyncMock(return_value=patient)):
            response = test_client.get("/v1/patients/123")

        assert response.status_code == 200
        assert response.json()["person_id"] == 123

    def test_get_patient_not_found(self, test_client):
        error = NotFoundError("Patient 9 not found")

        with patch("hospital_api.routes.patients.get_patient", new=AsyncMock(side_effect=error)):
            response = test_client.get("/v1/patients/9", headers={"X-Request-ID": "req-9"})

        assert response.status_code == 404
        body = response.json()
        assert body["title"] == "Not Found"
        assert body["instance"] == "/v1/patients/9"
        assert body["request_id"] == "req-9"
