import pytest
from fastapi.testclient import TestClient

from api.main import app
from config import settings


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["app"] == settings.APP_NAME


def test_compare_in_desired_state(client):
    response = client.post("/api/compare", json={
        "observed": {"Tags": [3, 2, 1], "Name": "svc"},
        "declared": {"Tags": [1, 2, 3], "Name": "svc"},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["in_desired_state"] is True
    assert data["checked_keys"] == ["Tags", "Name"]
    assert data["diagnostics"] == []


def test_compare_reports_drift(client):
    response = client.post("/api/compare", json={
        "observed": {"Port": 80, "Verbose": False},
        "declared": {"Port": 443, "Verbose": True},
        "kinds": {"Port": "Int16"},
        "keys_to_check": ["Port", "Verbose"],
    })
    data = response.json()
    assert data["in_desired_state"] is False
    assert data["checked_keys"] == ["Port"]
    assert data["diagnostic_count"] == 1
    assert data["diagnostics"][0]["field"] == "Port"
    assert data["diagnostics"][0]["kind"] == "Int16"
    assert data["diagnostics"][0]["reason"] == "value_mismatch"


def test_compare_with_allowed_keys(client):
    response = client.post("/api/compare", json={
        "observed": {"Port": 80, "Name": "a"},
        "declared": {"Port": 80, "Name": "b"},
        "allowed_keys": ["Port"],
    })
    assert response.json()["in_desired_state"] is True


def test_compare_rejects_unknown_kind(client):
    response = client.post("/api/compare", json={
        "observed": {},
        "declared": {"Port": 1.5},
        "kinds": {"Port": "Float"},
    })
    assert response.status_code == 400
    assert "Float" in response.json()["detail"]


def test_fleet_groups_identical_drift(client):
    response = client.post("/api/compare/fleet", json={
        "nodes": {
            "web01": {"Port": 80},
            "web02": {"Port": 80},
            "web03": {"Port": 443},
        },
        "declared": {"Port": 443},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["compliant_nodes"] == 1
    assert data["drifted_nodes"] == 2
    assert len(data["drift"]) == 1
    assert data["drift"][0]["nodes"] == ["web01", "web02"]


def test_request_size_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_REQUEST_SIZE", 10)
    response = client.post("/api/compare", json={"observed": {}, "declared": {"Port": 80}})
    assert response.status_code == 413
