"""
Tests for the circuit admin API.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from flapframes.api import deps
from flapframes.core.jwt import create_access_token
from flapframes.main import app

BASE = "/api/v1/circuits"


@pytest.fixture
def client(circuit_breaker):
    app.dependency_overrides[deps.get_circuit_breaker] = lambda: circuit_breaker
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:
    """Admin JWT is required on every circuit route."""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_missing_token(self, client):
        response = client.get(BASE)
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_expired_token(self, client):
        token = create_access_token("admin@example.com", expires_delta=timedelta(minutes=-5))
        response = client.get(BASE, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_non_admin_subject(self, client):
        token = create_access_token("someone@example.com")
        response = client.get(BASE, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_admin_subject_is_case_insensitive(self, client):
        token = create_access_token("Admin@Example.com")
        response = client.get(BASE, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_request_id_header(self, client, admin_headers):
        response = client.get(BASE, headers={**admin_headers, "X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestListAndGet:
    def test_list_all(self, client, admin_headers):
        response = client.get(BASE, headers=admin_headers)

        assert response.status_code == 200
        ids = [c["circuit_id"] for c in response.json()]
        assert ids == ["MASTER", "SLEEP_MODE", "PROVIDER_OPENAI", "PROVIDER_ANTHROPIC"]

    def test_filter_by_type(self, client, admin_headers):
        response = client.get(BASE, params={"type": "provider"}, headers=admin_headers)

        assert response.status_code == 200
        assert {c["circuit_type"] for c in response.json()} == {"provider"}

    def test_filter_by_unknown_type(self, client, admin_headers):
        response = client.get(BASE, params={"type": "cosmic"}, headers=admin_headers)
        assert response.status_code == 422

    def test_get_one(self, client, admin_headers):
        response = client.get(f"{BASE}/MASTER", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "on"
        assert body["default_state"] == "on"
        assert body["circuit_type"] == "manual"

    def test_get_unknown(self, client, admin_headers):
        response = client.get(f"{BASE}/NOPE", headers=admin_headers)
        assert response.status_code == 404

    def test_provider_status(self, client, admin_headers):
        response = client.get(f"{BASE}/PROVIDER_OPENAI/provider-status", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["can_attempt"] is True
        assert body["reset_timeout_ms"] == 300000

    def test_provider_status_for_manual_circuit(self, client, admin_headers):
        response = client.get(f"{BASE}/MASTER/provider-status", headers=admin_headers)
        assert response.status_code == 400


class TestCommands:
    def test_turn_off_and_on(self, client, admin_headers):
        response = client.post(f"{BASE}/MASTER/off", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["state"] == "off"

        response = client.post(f"{BASE}/MASTER/on", headers=admin_headers)
        assert response.json()["state"] == "on"

    def test_toggle_unknown(self, client, admin_headers):
        response = client.post(f"{BASE}/NOPE/off", headers=admin_headers)
        assert response.status_code == 404

    def test_reset_provider(self, client, circuit_breaker, admin_headers):
        client.post(f"{BASE}/PROVIDER_ANTHROPIC/off", headers=admin_headers)

        response = client.post(f"{BASE}/PROVIDER_ANTHROPIC/reset", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "on"
        assert body["failure_count"] == 0
        assert body["success_count"] == 0

    def test_reset_manual_circuit_rejected(self, client, admin_headers):
        response = client.post(f"{BASE}/SLEEP_MODE/reset", headers=admin_headers)
        assert response.status_code == 400

    def test_commands_require_admin(self, client):
        token = create_access_token("someone@example.com")
        response = client.post(f"{BASE}/MASTER/off", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
