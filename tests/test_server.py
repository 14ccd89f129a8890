"""Tests for ado_status_report.server."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from ado_status_report.core.data_models import FetchStrategy, ReportVariant
from ado_status_report.core.orchestrator import NO_WORK_ITEMS_MESSAGE
from ado_status_report.server import create_app


def _make_client(run: AsyncMock) -> TestClient:
    orchestrator = MagicMock()
    orchestrator.run = run
    orchestrator.strategy = FetchStrategy.for_variant(ReportVariant.HIERARCHY)
    return TestClient(create_app(orchestrator))


class TestHttp:
    def test_index_page(self) -> None:
        client = _make_client(AsyncMock())
        resp = client.get("/")
        assert resp.status_code == 200
        assert "generate-report" in resp.text

    def test_health(self) -> None:
        client = _make_client(AsyncMock())
        assert client.get("/health").json() == {"status": "ok", "variant": "hierarchy"}


class TestWebsocket:
    def test_generate_report(self) -> None:
        run = AsyncMock(return_value="# Weekly status")
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_json({"event": "generate-report"})
            assert ws.receive_json() == {"event": "report-generated", "data": "# Weekly status"}
        run.assert_awaited_once()

    def test_sentinel_is_delivered_as_report(self) -> None:
        run = AsyncMock(return_value=NO_WORK_ITEMS_MESSAGE)
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_json({"event": "generate-report"})
            assert ws.receive_json()["data"] == NO_WORK_ITEMS_MESSAGE

    def test_one_answer_per_request(self) -> None:
        run = AsyncMock(side_effect=["first", "second"])
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_json({"event": "generate-report"})
            ws.send_json({"event": "generate-report"})
            assert ws.receive_json()["data"] == "first"
            assert ws.receive_json()["data"] == "second"

    def test_unknown_event(self) -> None:
        run = AsyncMock()
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_json({"event": "delete-everything"})
            reply = ws.receive_json()
        assert reply["event"] == "error"
        assert "delete-everything" in reply["data"]
        run.assert_not_awaited()

    def test_malformed_frame(self) -> None:
        with _make_client(AsyncMock()).websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert ws.receive_json() == {"event": "error", "data": "Malformed message"}

    def test_binary_frame(self) -> None:
        run = AsyncMock(return_value="# Report")
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_bytes(b"\x00\x01")
            assert ws.receive_json() == {"event": "error", "data": "Malformed message"}
            ws.send_json({"event": "generate-report"})
            assert ws.receive_json()["data"] == "# Report"
        run.assert_awaited_once()

    def test_orchestrator_error_becomes_error_event(self) -> None:
        run = AsyncMock(side_effect=RuntimeError("boom"))
        with _make_client(run).websocket_connect("/ws") as ws:
            ws.send_json({"event": "generate-report"})
            assert ws.receive_json() == {"event": "error", "data": "boom"}
