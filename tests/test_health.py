from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from assistant_api.app.storage import SqliteInteractionLogStore


def test_health_reports_connected_database(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Service is healthy"
    data = body["data"]
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["version"] == "1.0.0"
    assert isinstance(data["uptime"], int)
    assert data["timestamp"].endswith("Z")


def test_health_returns_503_when_database_unreachable(
    client: TestClient, store: SqliteInteractionLogStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(store, "ping", lambda: False)

    response = client.get("/health")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Service is unhealthy"
    assert body["data"]["status"] == "unhealthy"
    assert body["data"]["database"] == "disconnected"
