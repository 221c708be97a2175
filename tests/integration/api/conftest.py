"""Pytest fixtures for API integration tests.

The app runs with its real wiring (engine, scheduler, broadcaster) against
a SQLite database file; only the transaction provider is replaced.
"""

import time

import pytest
from fastapi.testclient import TestClient

from ledgerflow.presentation.api import dependencies
from ledgerflow.presentation.api.app import API_V1_PREFIX, create_app
from ledgerflow_config.settings import Settings, clear_settings_cache
from tests.shared.fakes import TEST_HOUSEHOLD_ID, TEST_USER_ID, ScriptedProvider

SYNC_THRESHOLD = 5


@pytest.fixture
def api_v1_prefix() -> str:
    """Get the API v1 prefix for building URLs."""
    return API_V1_PREFIX


@pytest.fixture
def api_env(tmp_path, monkeypatch):
    """Point the app at a fresh database and make imports quick."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("IMPORT_SYNC_THRESHOLD", str(SYNC_THRESHOLD))
    monkeypatch.setenv("IMPORT_BATCH_SIZE", "4")
    monkeypatch.setenv("IMPORT_BATCH_DELAY_MS", "0")
    monkeypatch.setenv("PROVIDER_RETRY_BASE_DELAY_SECONDS", "0")
    clear_settings_cache()
    dependencies.clear_dependency_caches()
    yield
    clear_settings_cache()
    dependencies.clear_dependency_caches()


@pytest.fixture
def api_settings(api_env) -> Settings:
    """Test API settings with debug enabled."""
    return Settings(api_debug=True, api_cors_origins="http://localhost:3000")


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def test_client(api_settings, provider, monkeypatch):
    """Create a test client whose lifespan (schema, scheduler) is running."""
    app = create_app(settings=api_settings)

    # Requests resolve the provider through the override, background jobs
    # through the module-level lookup.
    app.dependency_overrides[dependencies.get_transaction_provider] = lambda: provider

    with monkeypatch.context() as patch:
        patch.setattr(dependencies, "get_transaction_provider", lambda: provider)
        with TestClient(app) as client:
            yield client


@pytest.fixture
def auth_headers() -> dict:
    """Identity headers as forwarded by the gateway."""
    return {
        "X-User-Id": str(TEST_USER_ID),
        "X-Household-Id": str(TEST_HOUSEHOLD_ID),
    }


@pytest.fixture
def wait_for_job(test_client, auth_headers, api_v1_prefix):
    """Poll a background job until it reaches a final status."""

    def wait(job_id: str, timeout: float = 10.0) -> dict:
        deadline = time.monotonic() + timeout
        while True:
            response = test_client.get(
                f"{api_v1_prefix}/imports/jobs/{job_id}",
                headers=auth_headers,
            )
            assert response.status_code == 200
            data = response.json()
            if data["status"] in ("completed", "failed"):
                return data
            if time.monotonic() > deadline:
                pytest.fail(f"Job {job_id} still {data['status']} after {timeout}s")
            time.sleep(0.05)

    return wait
