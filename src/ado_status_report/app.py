"""Service wiring for the server and one-shot report modes."""

from __future__ import annotations

import asyncio
import logging

import uvicorn

from ado_status_report.core.ado_client import AdoClient
from ado_status_report.core.data_models import FetchStrategy
from ado_status_report.core.orchestrator import ReportOrchestrator
from ado_status_report.core.summarizer import Summarizer
from ado_status_report.server import create_app
from ado_status_report.services.config_manager import ConfigurationError, Settings
from ado_status_report.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def build_orchestrator(settings: Settings, credentials: CredentialStore) -> ReportOrchestrator:
    """Create the collaborators from explicit settings and secrets.

    Raises:
        ConfigurationError: If the project or a secret is missing, or the
            report variant is unknown.
    """
    settings.validate()
    pat, api_key = credentials.require()
    try:
        strategy = FetchStrategy.for_variant(settings.report_variant)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown report variant: {settings.report_variant}") from exc

    client = AdoClient(settings, pat)
    summarizer = Summarizer(api_key, model=settings.openai_model)
    logger.debug(
        "Services initialised (org=%s, project=%s, variant=%s, model=%s)",
        settings.organization, settings.project, strategy.variant.value, summarizer.model,
    )
    return ReportOrchestrator(
        fetch_ids=client.fetch_ids,
        fetch_details=client.fetch_details,
        summarize=summarizer.summarize,
        strategy=strategy,
    )


def run_server(settings: Settings, orchestrator: ReportOrchestrator) -> int:
    """Serve the websocket trigger until interrupted."""
    logger.info("Server running on port %d", settings.port)
    uvicorn.run(create_app(orchestrator), host=settings.host, port=settings.port, log_config=None)
    return 0


def run_report(orchestrator: ReportOrchestrator) -> str:
    """Generate a single report synchronously."""
    return asyncio.run(orchestrator.run())
