"""FastAPI app exposing the ``generate-report`` websocket trigger."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse

from ado_status_report.core.orchestrator import ReportOrchestrator
from ado_status_report.resources_util import get_resource_path

logger = logging.getLogger(__name__)

GENERATE_EVENT = "generate-report"
REPORT_EVENT = "report-generated"
ERROR_EVENT = "error"


def create_app(orchestrator: ReportOrchestrator) -> FastAPI:
    """Build the web app around a ready orchestrator."""
    app = FastAPI(title="Azure DevOps Status Report")
    app.state.orchestrator = orchestrator

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        page = get_resource_path("index.html").read_text(encoding="utf-8")
        return HTMLResponse(page)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "variant": orchestrator.strategy.variant.value}

    @app.websocket("/ws")
    async def report_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("A user connected")
        try:
            while True:
                await _handle_frame(websocket, orchestrator)
        except WebSocketDisconnect:
            logger.info("User disconnected")

    return app


async def _handle_frame(websocket: WebSocket, orchestrator: ReportOrchestrator) -> None:
    """Answer one inbound frame with exactly one outbound event."""
    try:
        message = await websocket.receive_json()
    except (ValueError, KeyError):
        # binary frames carry no "text" key
        logger.warning("Ignoring malformed websocket frame")
        await websocket.send_json({"event": ERROR_EVENT, "data": "Malformed message"})
        return

    event = message.get("event") if isinstance(message, dict) else None
    if event != GENERATE_EVENT:
        logger.warning("Unknown websocket event: %r", event)
        await websocket.send_json({"event": ERROR_EVENT, "data": f"Unknown event: {event}"})
        return

    try:
        report = await orchestrator.run()
    except Exception as exc:
        logger.error("Report generation failed: %s", exc)
        await websocket.send_json({"event": ERROR_EVENT, "data": str(exc)})
        return
    await websocket.send_json({"event": REPORT_EVENT, "data": report})
