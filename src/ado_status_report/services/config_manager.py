"""JSON-based configuration persistence via platformdirs."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "ado-status-report"
CONFIG_FILENAME = "config.json"

_DEFAULTS: dict[str, Any] = {
    "organization": "",       # Azure DevOps organisation, e.g. "contoso"
    "project": "",            # project name inside the organisation
    "api_version": "6.0",
    "openai_model": "gpt-3.5-turbo",
    "report_variant": "hierarchy",  # "hierarchy" or "active-stories"
    "host": "0.0.0.0",
    "port": 3600,
    "request_timeout": 30,
}

# Environment variables that take precedence over the stored file.
_ENV_OVERRIDES: dict[str, str] = {
    "AZURE_DEVOPS_ORG": "organization",
    "AZURE_DEVOPS_PROJECT": "project",
    "OPENAI_MODEL": "openai_model",
    "REPORT_VARIANT": "report_variant",
    "PORT": "port",
}


class ConfigurationError(Exception):
    """Raised when a required setting or secret is missing."""


@dataclass(frozen=True)
class Settings:
    """Resolved, read-only settings handed to the collaborators."""

    organization: str
    project: str
    api_version: str = "6.0"
    openai_model: str = "gpt-3.5-turbo"
    report_variant: str = "hierarchy"
    host: str = "0.0.0.0"
    port: int = 3600
    request_timeout: float = 30

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if the project is not set."""
        missing = [name for name in ("organization", "project") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")


class ConfigManager:
    """Read/write JSON configuration stored in the platform config directory."""

    def __init__(self) -> None:
        self._dir = Path(user_config_dir(APP_NAME, appauthor=False))
        self._path = self._dir / CONFIG_FILENAME
        self._data: dict[str, Any] = dict(_DEFAULTS)
        self._load()
        logger.debug("Config loaded from %s", self._path)

    # -- public API -----------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return a config value, falling back to *default*."""
        return self._data.get(key, default)

    def update(self, values: dict[str, Any]) -> None:
        """Bulk-update config values and persist."""
        self._data.update(values)
        self._save()

    def reset(self) -> None:
        """Reset all values to defaults and persist."""
        logger.info("Resetting config to defaults")
        self._data = dict(_DEFAULTS)
        self._save()

    @property
    def path(self) -> Path:
        return self._path

    def settings(self, environ: dict[str, str] | None = None) -> Settings:
        """Merge stored values with environment overrides into :class:`Settings`."""
        env = os.environ if environ is None else environ
        overrides = {key: env[var] for var, key in _ENV_OVERRIDES.items() if env.get(var)}
        for key in overrides:
            logger.debug("Using %s from environment", key)

        def value(key: str) -> Any:
            if key in overrides:
                return overrides[key]
            return self.get(key, _DEFAULTS[key])

        try:
            port = int(value("port"))
            timeout = float(value("request_timeout"))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        return Settings(
            organization=str(value("organization")),
            project=str(value("project")),
            api_version=str(value("api_version")),
            openai_model=str(value("openai_model")),
            report_variant=str(value("report_variant")),
            host=str(value("host")),
            port=port,
            request_timeout=timeout,
        )

    # -- internals ------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, encoding="utf-8") as fh:
                stored = json.load(fh)
            if isinstance(stored, dict):
                self._data.update(stored)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to load config from %s: %s", self._path, exc)

    def _save(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, default=str)
        except OSError as exc:
            logger.warning("Failed to save config to %s: %s", self._path, exc)
