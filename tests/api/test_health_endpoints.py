"""Tests for health check endpoints."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def health_broker(monkeypatch):
    broker = Mock()
    broker.is_connected.return_value = True
    broker.get_dlq_message_count.return_value = 0
    monkeypatch.setattr("app.api.health.get_message_broker", lambda: broker)
    return broker


class TestHealthEndpoints:
    """Test cases for health check endpoints."""

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_database(self, client: TestClient):
        response = client.get("/health/database")

        assert response.json() == {"status": "healthy", "database_connected": True}

    def test_messaging(self, client: TestClient, health_broker):
        response = client.get("/health/messaging")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["broker_connected"] is True
        assert data["dlq_message_count"] == 0

    def test_messaging_dlq_backlog(self, client: TestClient, health_broker):
        health_broker.get_dlq_message_count.return_value = 250

        data = client.get("/health/messaging").json()

        assert data["status"] == "unhealthy"
        assert data["dlq_healthy"] is False

    def test_messaging_broker_down(self, client: TestClient, health_broker):
        health_broker.get_dlq_message_count.side_effect = ConnectionError("refused")

        data = client.get("/health/messaging").json()

        assert data["status"] == "unhealthy"
        assert data["broker_connected"] is False

    def test_ready(self, client: TestClient, health_broker):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "email_pipeline_ready": True}

    def test_ready_without_broker(self, client: TestClient, health_broker):
        health_broker.get_dlq_message_count.side_effect = ConnectionError("refused")

        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["email_pipeline_ready"] is False

    def test_live(self, client: TestClient):
        assert client.get("/health/live").json() == {"status": "alive"}
