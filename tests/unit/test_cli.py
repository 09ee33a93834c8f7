"""Tests for the typer CLI."""

import logging

import pytest
from typer.testing import CliRunner

from retailhub.cli import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def memory_databases(monkeypatch, tmp_path):
    monkeypatch.setenv("RETAILHUB_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("RETAILHUB_TENANT_DB_URL_TEMPLATE", "sqlite+aiosqlite://")
    monkeypatch.setenv("RETAILHUB_PUBLIC_PATH", str(tmp_path / "public"))
    from retailhub.common.config import get_settings
    from retailhub.deps import reset_singletons

    logger = logging.getLogger("retailhub")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    get_settings.cache_clear()
    reset_singletons()
    yield
    get_settings.cache_clear()
    reset_singletons()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestCli:
    def test_import_unknown_tenant(self, tmp_path):
        path = tmp_path / "countries.csv"
        path.write_text("iso2,name\nUS,United States\n")
        result = runner.invoke(app, ["import", "ghost", "countries", str(path)])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_seed_unknown_tenant(self):
        result = runner.invoke(app, ["seed", "ghost"])
        assert result.exit_code == 1
        assert "Tenant 'ghost' not found" in result.output

    def test_provision_rejects_bad_subdomain(self):
        result = runner.invoke(
            app,
            ["provision", "Bad Name", "--package-id", "1", "--name", "Jo",
             "--email", "jo@example.com", "--password", "secret123"],
        )
        assert result.exit_code == 2
        assert "Invalid input" in result.output

    def test_provision_without_settings(self):
        result = runner.invoke(
            app,
            ["provision", "acme", "--package-id", "1", "--name", "Jo",
             "--email", "jo@example.com", "--password", "secret123"],
        )
        assert result.exit_code == 1
        assert "CONFIGURATION_MISSING" in result.output
