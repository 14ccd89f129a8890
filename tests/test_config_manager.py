"""Tests for ado_status_report.services.config_manager."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ado_status_report.services.config_manager import (
    ConfigManager,
    ConfigurationError,
    Settings,
)


def _make_manager(tmp_path: Path) -> ConfigManager:
    """Create a ConfigManager pointing at *tmp_path* for isolation."""
    mgr = ConfigManager()
    mgr._dir = tmp_path
    mgr._path = tmp_path / "config.json"
    mgr.reset()
    return mgr


class TestDefaults:
    """Config should ship with sensible defaults."""

    def test_port(self, tmp_path: Path) -> None:
        assert _make_manager(tmp_path).get("port") == 3600

    def test_api_version(self, tmp_path: Path) -> None:
        assert _make_manager(tmp_path).get("api_version") == "6.0"

    def test_report_variant(self, tmp_path: Path) -> None:
        assert _make_manager(tmp_path).get("report_variant") == "hierarchy"

    def test_organization_empty(self, tmp_path: Path) -> None:
        assert _make_manager(tmp_path).get("organization") == ""

    def test_missing_key_returns_default(self, tmp_path: Path) -> None:
        assert _make_manager(tmp_path).get("nonexistent", "fallback") == "fallback"


class TestSetAndGet:
    def test_update_single(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"project": "Fabrikam"})
        assert mgr.get("project") == "Fabrikam"

    def test_update_bulk(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"organization": "contoso", "project": "Fabrikam"})
        assert mgr.get("organization") == "contoso"
        assert mgr.get("project") == "Fabrikam"

    def test_update_does_not_touch_other_keys(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"project": "Fabrikam"})
        assert mgr.get("port") == 3600


class TestPersistence:
    def test_round_trip(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"organization": "contoso"})

        mgr2 = ConfigManager()
        mgr2._dir = tmp_path
        mgr2._path = tmp_path / "config.json"
        mgr2._data = {}
        mgr2._load()
        assert mgr2.get("organization") == "contoso"

    def test_corrupt_file_does_not_crash(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text("NOT JSON {{{", encoding="utf-8")

        mgr = ConfigManager()
        mgr._dir = tmp_path
        mgr._path = config_path
        mgr._data = {"port": 3600}
        mgr._load()
        assert mgr.get("port") == 3600

    def test_file_contains_no_secrets(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        raw = json.loads((tmp_path / "config.json").read_text())
        assert not any("token" in key or "key" in key for key in raw)
        assert mgr.path == tmp_path / "config.json"


class TestSettings:
    def test_from_stored_values(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"organization": "contoso", "project": "Fabrikam"})
        settings = mgr.settings(environ={})
        assert settings.organization == "contoso"
        assert settings.project == "Fabrikam"
        assert settings.port == 3600
        assert settings.request_timeout == 30.0

    def test_environment_overrides(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"organization": "stored"})
        settings = mgr.settings(
            environ={
                "AZURE_DEVOPS_ORG": "from-env",
                "AZURE_DEVOPS_PROJECT": "Env Project",
                "PORT": "8080",
                "REPORT_VARIANT": "active-stories",
            }
        )
        assert settings.organization == "from-env"
        assert settings.project == "Env Project"
        assert settings.port == 8080
        assert settings.report_variant == "active-stories"

    def test_empty_env_value_ignored(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr.update({"project": "stored"})
        assert mgr.settings(environ={"AZURE_DEVOPS_PROJECT": ""}).project == "stored"

    def test_missing_stored_key_uses_default(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        mgr._data = {"organization": "contoso", "project": "Fabrikam"}
        settings = mgr.settings(environ={})
        assert settings.api_version == "6.0"
        assert settings.port == 3600
        assert settings.report_variant == "hierarchy"

    def test_invalid_port(self, tmp_path: Path) -> None:
        mgr = _make_manager(tmp_path)
        with pytest.raises(ConfigurationError):
            mgr.settings(environ={"PORT": "eighty"})

    def test_validate_missing(self) -> None:
        with pytest.raises(ConfigurationError, match="organization, project"):
            Settings(organization="", project="").validate()

    def test_validate_ok(self) -> None:
        Settings(organization="contoso", project="Fabrikam").validate()
