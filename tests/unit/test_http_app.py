from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from briefing_extractor.config.settings import BriefingSettings
from briefing_extractor.http_app import app
from briefing_extractor.lifespan import app_state
from briefing_extractor.services.briefing_service import BriefingBatchService
from briefing_extractor.services.progress import ProgressRegistry
from fakes import FakeDriver

WF_URL = "https://acme.my.workfront.com/project/5372048/documents"


async def _empty_project_driver(state_path: str, headless: bool) -> FakeDriver:
    return FakeDriver(title="Campaign_5372048_Q3")


@pytest.fixture()
def client(settings: BriefingSettings):
    app_state["progress"] = ProgressRegistry()
    app_state["briefing_service"] = BriefingBatchService(driver_factory=_empty_project_driver, settings=settings)
    with TestClient(app) as test_client:
        yield test_client
    app_state.clear()


def _sse_events(body: str) -> list[str]:
    return [line[len("data: "):] for line in body.splitlines() if line.startswith("data: ")]


def test_healthz(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_extract_returns_camel_case_batch(client: TestClient) -> None:
    response = client.post("/api/v1/briefings/extract", json={"projectUrls": [WF_URL], "operationId": "op-42"})
    assert response.status_code == 200
    body = response.json()
    assert body["operationId"] == "op-42"
    assert body["total"] == 1 and body["successful"] == 1
    outcome = body["outcomes"][0]
    assert outcome["projectNumber"] == 1
    assert outcome["projectName"] == "5372048"
    assert outcome["filesDownloaded"] == 0
    assert outcome["pdfProcessing"] == {"processed": 0, "results": []}
    assert body["summary"]["pdfProcessing"]["totalPdfs"] == 0


def test_invalid_payload_is_rejected(client: TestClient) -> None:
    response = client.post("/api/v1/briefings/extract", json={"projectUrls": ["ftp://nowhere"]})
    assert response.status_code == 400
    assert response.json()["detail"]["errorCode"] == "INVALID_INPUT"


def test_missing_session_maps_to_412(client: TestClient, session_state_file: Path) -> None:
    session_state_file.unlink()
    response = client.post("/api/v1/briefings/extract", json={"projectUrls": [WF_URL]})
    assert response.status_code == 412
    assert response.json()["detail"]["errorCode"] == "SESSION_INVALID"


def test_stream_emits_progress_then_result_then_done(client: TestClient) -> None:
    response = client.post(
        "/api/v1/briefings/extract/stream", json={"projectUrls": [WF_URL], "operationId": "op-stream"}
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["x-operation-id"] == "op-stream"

    frames = _sse_events(response.text)
    assert frames[-1] == "[DONE]"
    payloads = [json.loads(f) for f in frames[:-1]]
    types = [p["type"] for p in payloads]
    assert types[0] == "start"
    assert "project-success" in types
    assert types[-2:] == ["completed", "result"]
    assert payloads[-1]["data"]["successful"] == 1
    assert all(p["operationId"] == "op-stream" for p in payloads)


def test_stream_reports_session_errors_as_error_event(client: TestClient, session_state_file: Path) -> None:
    session_state_file.unlink()
    response = client.post("/api/v1/briefings/extract/stream", json={"projectUrls": [WF_URL]})
    frames = _sse_events(response.text)
    assert frames[-1] == "[DONE]"
    error = json.loads(frames[-2])
    assert error["type"] == "error"
    assert error["errorCode"] == "SESSION_INVALID"


def test_cancel_unknown_operation_is_404(client: TestClient) -> None:
    response = client.post("/api/v1/briefings/does-not-exist/cancel/1")
    assert response.status_code == 404
