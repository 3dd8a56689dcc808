"""API fixtures: TestClient bound to the per-test in-memory store."""

import pytest
from fastapi.testclient import TestClient

from threatintel.api.main import app
from threatintel.config import Settings
from threatintel.db.session import get_db

ANALYSIS_SECRET = "s3cret-token"


@pytest.fixture
def settings(monkeypatch):
    settings = Settings(
        openrouter_api_key="test-key-123",
        openrouter_models=["model/primary", "model/fallback"],
        analysis_api_key=ANALYSIS_SECRET,
        _env_file=None,
    )
    monkeypatch.setattr("threatintel.api.main.get_settings", lambda: settings)
    monkeypatch.setattr("threatintel.agents.analyze.get_settings", lambda: settings)
    return settings


@pytest.fixture
def client(db, settings):
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def as_alice():
    return {"X-User-Id": "alice", "X-User-Role": "analyst"}


@pytest.fixture
def as_admin():
    return {"X-User-Id": "root", "X-User-Role": "admin"}
