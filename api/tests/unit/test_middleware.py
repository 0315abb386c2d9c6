"""Tests for request id and access logging middleware."""

import logging
import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hospital_api.middleware import REQUEST_ID_HEADER, RequestLoggingMiddleware, get_request_id


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/echo")
    async def echo():
        return {"request_id": get_request_id()}

    return TestClient(app)


class TestRequestLoggingMiddleware:
    """Test request id propagation and access logs."""

    def test_generates_uuid_when_missing(self, client):
        response = client.get("/echo")

        request_id = response.headers[REQUEST_ID_HEADER]
        assert uuid.UUID(request_id)
        assert response.json()["request_id"] == request_id

    def test_reuses_incoming_header(self, client):
        response = client.get("/echo", headers={REQUEST_ID_HEADER: "trace-42"})

        assert response.headers[REQUEST_ID_HEADER] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    def test_blank_header_is_replaced(self, client):
        response = client.get("/echo", headers={REQUEST_ID_HEADER: "   "})

        assert uuid.UUID(response.headers[REQUEST_ID_HEADER])

    def test_context_is_reset_after_request(self, client):
        client.get("/echo")
        assert get_request_id() is None

    def test_access_log_line(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="hospital_api.middleware.request_logging"):
            client.get("/echo", headers={REQUEST_ID_HEADER: "trace-7"})

        messages = [record.getMessage() for record in caplog.records]
        assert any(
            message.startswith("GET /echo 200") and "request_id=trace-7" in message
            for message in messages
        )
