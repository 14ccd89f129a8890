"""Entry point for ``python -m ado_status_report``."""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys

from dotenv import load_dotenv

logger = logging.getLogger("ado_status_report")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ado-status-report",
        description="Generate markdown status reports from Azure DevOps work items.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--variant",
        choices=["hierarchy", "active-stories"],
        help="Override the configured report variant.",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Run the websocket server (default).")
    sub.add_parser("report", help="Print one report to stdout and exit.")
    sub.add_parser("login", help="Store the Azure DevOps PAT and OpenAI key in the keyring.")
    sub.add_parser("logout", help="Remove stored secrets from the keyring.")

    configure = sub.add_parser("configure", help="Persist project settings.")
    configure.add_argument("--organization")
    configure.add_argument("--project")
    configure.add_argument("--model", dest="openai_model")
    configure.add_argument("--port", type=int)
    configure.add_argument("--reset", action="store_true", help="Restore defaults first.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the selected command, returning the exit code."""
    load_dotenv()
    args = _parser().parse_args(argv)

    from ado_status_report.app import build_orchestrator, configure_logging, run_report, run_server
    from ado_status_report.services.config_manager import ConfigManager, ConfigurationError
    from ado_status_report.services.credential_store import CredentialStore

    configure_logging(args.verbose)
    config = ConfigManager()
    credentials = CredentialStore()

    if args.command == "configure":
        if args.reset:
            config.reset()
        values = {
            key: getattr(args, key)
            for key in ("organization", "project", "openai_model", "port")
            if getattr(args, key) is not None
        }
        if args.variant:
            values["report_variant"] = args.variant
        config.update(values)
        logger.info("Configuration saved to %s", config.path)
        return 0

    if args.command == "login":
        credentials.store_pat(getpass.getpass("Azure DevOps personal access token: "))
        credentials.store_openai_key(getpass.getpass("OpenAI API key: "))
        return 0

    if args.command == "logout":
        credentials.clear()
        return 0

    environ = {**os.environ, "REPORT_VARIANT": args.variant} if args.variant else None
    try:
        settings = config.settings(environ)
        orchestrator = build_orchestrator(settings, credentials)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    if args.command == "report":
        print(run_report(orchestrator))
        return 0
    return run_server(settings, orchestrator)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
