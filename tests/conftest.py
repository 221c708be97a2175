"""Root pytest configuration for test discovery and auto-skip behavior.

Test Structure:
    tests/
    ├── unit/                  # Fast, isolated tests (in-memory fakes, SQLite)
    │   ├── domain/
    │   ├── application/
    │   ├── infrastructure/
    │   └── presentation/
    ├── integration/           # Full app wiring against a real database file
    │   └── api/
    └── shared/                # Shared fakes and helpers

Environment Variables:
    RUN_INTEGRATION=1    Run @pytest.mark.integration tests
    RUN_ALL_TESTS=1      Run all tests (overrides other settings)
    TEST_DATABASE_URL    Run repository tests against this database
                         (e.g. postgresql+asyncpg://...) instead of SQLite

Pytest Options:
    --run-integration    Run integration tests
    --run-all            Run all tests
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from ledgerflow_config import clear_settings_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load .env.test for tests if present
CONFIG_DIR = PROJECT_ROOT / "config"
if (CONFIG_DIR / ".env.test").exists():
    load_dotenv(CONFIG_DIR / ".env.test")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.integration",
    )
    parser.addoption(
        "--run-all",
        action="store_true",
        default=False,
        help="Run all tests regardless of markers",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests that need an external database server (auto-skipped)",
    )
    config.addinivalue_line(
        "markers",
        "postgres: Tests relying on PostgreSQL-only behavior",
    )


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items):
    """Auto-skip tests based on markers unless explicitly enabled."""
    if config.getoption("--run-all") or _env_flag("RUN_ALL_TESTS"):
        return

    run_integration = config.getoption("--run-integration") or _env_flag(
        "RUN_INTEGRATION",
    )
    has_postgres = os.environ.get("TEST_DATABASE_URL", "").startswith("postgresql")

    skip_integration = pytest.mark.skip(
        reason="Integration test - run with --run-integration or RUN_INTEGRATION=1",
    )
    skip_postgres = pytest.mark.skip(
        reason="PostgreSQL test - set TEST_DATABASE_URL=postgresql+asyncpg://...",
    )

    for item in items:
        item_markers = {mark.name for mark in item.iter_markers()}

        if not run_integration and "integration" in item_markers:
            item.add_marker(skip_integration)

        if not has_postgres and "postgres" in item_markers:
            item.add_marker(skip_postgres)


@pytest.fixture(scope="session", autouse=True)
def configure_app_settings():
    """Start and end the test session with freshly loaded settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()
