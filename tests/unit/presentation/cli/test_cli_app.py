"""Tests for the Typer CLI."""

from uuid import uuid4

import pytest
from typer.testing import CliRunner

from ledgerflow.presentation.cli.app import app
from ledgerflow_config.settings import clear_settings_cache
from tests.shared.fakes import TEST_ACCOUNT_ID, TEST_USER_ID

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("IMPORT_BATCH_DELAY_MS", "0")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(
        "external_id,amount,date,description\n"
        "cli-1,12.50,2025-11-10,Coffee\n"
        "cli-2,-2000,2025-11-11,Salary\n"
        "cli-3,oops,2025-11-12,Broken\n",
    )
    return path


def _import(path, *extra):
    return runner.invoke(
        app,
        [
            "import-csv",
            str(path),
            "--user-id",
            str(TEST_USER_ID),
            "--account-id",
            str(TEST_ACCOUNT_ID),
            *extra,
        ],
    )


class TestImportCsvCommand:
    def test_inline_import_prints_counts(self, csv_file):
        result = _import(csv_file)

        assert result.exit_code == 0, result.output
        assert "Read 3 records" in result.output
        assert "Synced" in result.output

    def test_import_as_job(self, csv_file):
        result = _import(csv_file, "--job")

        assert result.exit_code == 0, result.output
        assert "completed" in result.output

    def test_unreadable_file_fails(self, tmp_path):
        path = tmp_path / "broken.csv"
        path.write_text("description\nCoffee\n")

        result = _import(path)

        assert result.exit_code == 1
        assert "INVALID_UPLOAD" in result.output


class TestJobStatusCommand:
    def test_unknown_job(self):
        runner.invoke(app, ["db-init"])

        result = runner.invoke(
            app,
            ["job-status", str(uuid4()), "--user-id", str(TEST_USER_ID)],
        )

        assert result.exit_code == 1
        assert "not found" in result.output.lower()
