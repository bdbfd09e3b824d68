"""Tests for health check and service endpoints."""

from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient

from weather_analyzer.main import create_app


def test_health_check(client):
    """Test health check endpoint returns healthy status."""
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()

    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["record_count"] == 0
    assert data["ingestion"]["enabled"] is False
    assert data["ingestion"]["running"] is False


def test_health_check_counts_records(client, stored_records):
    response = client.get("/health")

    assert response.json()["record_count"] == 3


def test_health_check_database_down(client):
    with patch("weather_analyzer.routers.health.check_db_connection", return_value=False):
        response = client.get("/health")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_health_reports_scheduler(test_config, test_engine):
    """Test that an enabled scheduler is started and reported."""
    config = test_config.model_copy(update={"scheduler_enabled": True, "weather_poll_period_ms": 3600000})
    app = create_app(config, engine=test_engine)

    with patch("weather_analyzer.scheduler.IngestionScheduler.run_once"):
        with TestClient(app) as test_client:
            data = test_client.get("/health").json()
            assert app.state.scheduler is not None

    assert data["ingestion"]["enabled"] is True
    assert data["ingestion"]["running"] is True
    assert app.state.scheduler is None


def test_root_endpoint(client):
    """Test root endpoint returns API information."""
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()

    assert data["service"] == "Weather Analyzer API"
    assert data["version"] == "1.0.0"
    assert "/docs" in data["documentation"]
    assert "/health" in data["health_check"]


def test_request_headers(client):
    response = client.get("/weather/all")

    assert "X-Request-ID" in response.headers
    assert "X-Response-Time" in response.headers


def test_metrics_endpoint(client):
    """Test Prometheus metrics endpoint."""
    client.get("/weather/all")

    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert "text/plain" in response.headers["content-type"]

    content = response.text
    assert "weather_api_requests_total" in content
    assert "weather_ingestion_cycles_total" in content
