"""Tests for the domain exception to HTTP response mapping."""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ledgerflow.domain.imports.exceptions import (
    InstitutionUnavailableError,
    JobNotFoundError,
    ProviderRateLimitedError,
    ProviderReauthRequiredError,
    StorageUnavailableError,
    UploadParseError,
)
from ledgerflow.presentation.api.exception_handlers import setup_exception_handlers


def _client_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


class TestExceptionHandlers:
    @pytest.mark.parametrize(
        ("exc", "status_code", "code"),
        [
            (JobNotFoundError(uuid4()), 404, "IMPORT_JOB_NOT_FOUND"),
            (UploadParseError("bad file"), 400, "INVALID_UPLOAD"),
            (ProviderReauthRequiredError(), 401, "PROVIDER_REAUTH_REQUIRED"),
            (InstitutionUnavailableError(), 503, "INSTITUTION_UNAVAILABLE"),
        ],
    )
    def test_domain_errors(self, exc, status_code, code):
        response = _client_raising(exc).get("/boom")

        assert response.status_code == status_code
        assert response.json() == {"detail": exc.message, "code": code}

    def test_rate_limit_forwards_retry_after(self):
        response = _client_raising(ProviderRateLimitedError(30)).get("/boom")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"

    def test_storage_errors_hide_driver_details(self):
        exc = StorageUnavailableError("connection to 10.0.0.5 refused")

        response = _client_raising(exc).get("/boom")

        assert response.status_code == 503
        assert response.json()["code"] == "STORAGE_UNAVAILABLE"
        assert "10.0.0.5" not in response.json()["detail"]

    def test_unexpected_errors(self):
        response = _client_raising(RuntimeError("secret")).get("/boom")

        assert response.status_code == 500
        assert response.json() == {
            "detail": "An internal error occurred",
            "code": "INTERNAL_ERROR",
        }
