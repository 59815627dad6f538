"""
Tests for the JSON error responses produced by the exception handlers
"""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from example_module.exception_handlers import (
    create_error_response,
    get_error_code,
    get_error_type,
    register_exception_handlers,
)
from example_module.exceptions import (
    BackupError,
    CSRFError,
    ExampleModuleError,
    ModuleDisabledError,
    RateLimitExceededError,
    SubmissionError,
)


@pytest.fixture
def client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/disabled")
    async def disabled():
        raise ModuleDisabledError()

    @app.get("/limited")
    async def limited():
        raise RateLimitExceededError()

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret internals")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


class TestCreateErrorResponse:
    def test_minimal(self):
        response = create_error_response(400, "Bad input")
        body = json.loads(response.body)
        assert response.status_code == 400
        assert body == {"error": {"status_code": 400, "message": "Bad input", "type": "Bad Request"}}

    def test_optional_fields(self):
        response = create_error_response(422, "Invalid", error_code="X", details={"field": "title"}, path="/p")
        error = json.loads(response.body)["error"]
        assert error["error_code"] == "X"
        assert error["details"] == {"field": "title"}
        assert error["path"] == "/p"
        assert error["type"] == "Validation Error"


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status_code,expected",
        [(403, "Forbidden"), (404, "Not Found"), (429, "Too Many Requests"), (418, "Error")],
    )
    def test_error_type(self, status_code, expected):
        assert get_error_type(status_code) == expected

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (CSRFError(), "CSRF_VALIDATION_FAILED"),
            (RateLimitExceededError(), "RATE_LIMIT_EXCEEDED"),
            (SubmissionError("nope"), "SUBMISSION_REJECTED"),
            (ModuleDisabledError(), "MODULE_DISABLED"),
            (BackupError(), "MODULE_ERROR"),
            (ExampleModuleError("plain"), "MODULE_ERROR"),
        ],
    )
    def test_error_code(self, exc, expected):
        assert get_error_code(exc) == expected

    def test_backup_error_details(self):
        assert BackupError().details == {"step": "backup"}


class TestHandlers:
    def test_module_error(self, client):
        response = client.get("/disabled")
        assert response.status_code == 404
        error = response.json()["error"]
        assert error["error_code"] == "MODULE_DISABLED"
        assert error["path"] == "/disabled"

    def test_rate_limit(self, client):
        response = client.get("/limited")
        assert response.status_code == 429
        assert response.json()["error"]["message"] == "Rate limit exceeded. Please try again later."

    def test_unhandled_error_hides_details(self, client):
        response = client.get("/crash")
        assert response.status_code == 500
        error = response.json()["error"]
        assert error["error_code"] == "INTERNAL_ERROR"
        assert "secret internals" not in response.text
