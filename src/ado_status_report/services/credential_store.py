"""Keyring storage for the Azure DevOps PAT and the OpenAI API key."""

from __future__ import annotations

import logging
import os

import keyring
import keyring.errors

from ado_status_report.services.config_manager import ConfigurationError

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "ado-status-report"
PAT_KEY = "azure_devops_pat"
OPENAI_KEY = "openai_api_key"

_ENV_VARS = {
    PAT_KEY: "AZURE_DEVOPS_PAT",
    OPENAI_KEY: "OPENAI_API_KEY",
}


class CredentialStore:
    """Look up secrets in the environment first, then the OS keyring.

    Nothing secret is ever written to the JSON config file.
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    # -- Azure DevOps ---------------------------------------------------------

    def store_pat(self, token: str) -> None:
        """Save the personal access token in the keyring."""
        keyring.set_password(KEYRING_SERVICE, PAT_KEY, token)
        logger.info("Azure DevOps PAT stored in keyring")

    def get_pat(self) -> str | None:
        return self._lookup(PAT_KEY)

    # -- OpenAI ---------------------------------------------------------------

    def store_openai_key(self, api_key: str) -> None:
        """Save the OpenAI API key in the keyring."""
        keyring.set_password(KEYRING_SERVICE, OPENAI_KEY, api_key)
        logger.info("OpenAI API key stored in keyring")

    def get_openai_key(self) -> str | None:
        return self._lookup(OPENAI_KEY)

    # -- shared ---------------------------------------------------------------

    def require(self) -> tuple[str, str]:
        """Return ``(pat, openai_key)`` or raise :class:`ConfigurationError`."""
        pat = self.get_pat()
        api_key = self.get_openai_key()
        missing = [
            _ENV_VARS[name]
            for name, value in ((PAT_KEY, pat), (OPENAI_KEY, api_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing secrets: {', '.join(missing)} (set them or run 'login')"
            )
        return pat, api_key  # type: ignore[return-value]

    def clear(self) -> None:
        """Remove both secrets from the keyring."""
        logger.info("Clearing stored credentials")
        for key in (PAT_KEY, OPENAI_KEY):
            try:
                keyring.delete_password(KEYRING_SERVICE, key)
            except keyring.errors.PasswordDeleteError:
                pass

    def _lookup(self, key: str) -> str | None:
        from_env = self._environ.get(_ENV_VARS[key])
        if from_env:
            return from_env
        try:
            return keyring.get_password(KEYRING_SERVICE, key)
        except keyring.errors.KeyringError as exc:
            logger.warning("Keyring lookup for %s failed: %s", key, exc)
            return None
