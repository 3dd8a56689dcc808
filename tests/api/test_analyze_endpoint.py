"""Tests for POST /analyze: shared-secret ingress over the newest threat log."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest
from starlette.concurrency import run_in_threadpool

from threatintel.models.logs import ThreatLogCreate
from threatintel.services import analyses, threat_logs


@pytest.fixture
def auth(settings):
    return {"Authorization": f"Bearer {settings.analysis_api_key}"}


def model_reply(**overrides) -> str:
    data = {
        "summary": "Brute force suspected",
        "details": "Cause: 15 failed logins for admin from one IP.",
        "recommendations": ["Block IP", "Enable MFA"],
        "severity": "high",
        "confidence": 88,
    }
    data.update(overrides)
    return json.dumps(data)


def insert_log(db, raw_data='{"event": "login_attempt", "attempts": 15}'):
    return threat_logs.insert_threat_log(
        db, ThreatLogCreate(raw_data=raw_data, source="auth_system", event_type="authentication")
    )


def test_missing_token_is_unauthorized(client, db):
    insert_log(db)
    response = client.post("/analyze")
    assert response.status_code == 401
    assert response.text == "Unauthorized"


def test_wrong_token_is_unauthorized(client, db):
    insert_log(db)
    response = client.post("/analyze", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_unconfigured_secret_rejects_everything(client, settings, db):
    settings.analysis_api_key = None
    insert_log(db)
    response = client.post("/analyze", headers={"Authorization": "Bearer "})
    assert response.status_code == 401


def test_no_threat_logs_is_not_found(client, auth):
    response = client.post("/analyze", headers=auth)
    assert response.status_code == 404
    assert response.text == "No threat logs found"


def test_analyzes_latest_log_persists_and_links(client, db, auth):
    insert_log(db, raw_data="older event")
    latest = insert_log(db, raw_data="newest event")

    with patch("threatintel.agents.analyze._request_completion", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = model_reply()
        response = client.post("/analyze", headers=auth)

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"id", "summary", "details", "recommendations", "severity", "confidence"}
    assert body["summary"] == "Brute force suspected"
    assert body["severity"] == "high"
    assert body["confidence"] == 88

    assert "newest event" in mock_call.call_args.args[1][1]["content"]

    stored = analyses.get_analysis(db, body["id"])
    assert stored.target_type == "threat_log"
    assert stored.target_id == latest.id
    assert stored.metadata.data_points == 1

    marked = threat_logs.latest_threat_log(db)
    assert marked.id == latest.id
    assert marked.analyzed is True
    assert marked.ai_analysis_id == body["id"]
    assert marked.severity.value == "high"


def test_degraded_result_is_still_persisted(client, db, auth):
    insert_log(db)
    with patch("threatintel.agents.analyze._request_completion", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = "not json at all"
        response = client.post("/analyze", headers=auth)

    assert response.status_code == 200
    assert response.json()["confidence"] == 0
    assert response.json()["severity"] == "low"
    assert threat_logs.latest_threat_log(db).analyzed is True


def test_all_models_failing_is_internal_error(client, db, auth):
    insert_log(db)
    request = httpx.Request("POST", "https://openrouter.test/api/v1/chat/completions")
    with patch("threatintel.agents.analyze._request_completion", new_callable=AsyncMock) as mock_call:
        mock_call.side_effect = openai.APIConnectionError(request=request)
        response = client.post("/analyze", headers=auth)

    assert response.status_code == 500
    assert response.text == "Internal server error"
    assert mock_call.await_count == 2
    assert threat_logs.latest_threat_log(db).analyzed is False
    assert analyses.analysis_stats(db).total == 0


def test_missing_completion_key_is_internal_error(client, settings, db, auth):
    settings.openrouter_api_key = None
    insert_log(db)
    with patch("threatintel.agents.analyze._request_completion", new_callable=AsyncMock) as mock_call:
        response = client.post("/analyze", headers=auth)

    assert response.status_code == 500
    mock_call.assert_not_awaited()


def test_store_calls_run_in_threadpool(client, db, auth, monkeypatch):
    offloaded = []

    async def recording_threadpool(func, *args, **kwargs):
        offloaded.append(func.__name__)
        return await run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr("threatintel.api.main.run_in_threadpool", recording_threadpool)
    insert_log(db)
    with patch("threatintel.agents.analyze._request_completion", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = model_reply()
        response = client.post("/analyze", headers=auth)

    assert response.status_code == 200
    assert offloaded == ["latest_threat_log", "save_analysis", "mark_threat_log_analyzed"]
