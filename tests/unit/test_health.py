"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "slot-scheduler"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when the database pool is healthy."""
    db_health = {
        "healthy": True,
        "connection_time_ms": 1.2,
        "pool_stats": {"pool_size": 5, "pool_available": 4, "pool_utilization_percent": 20.0},
    }
    with patch("app.routes.health.db_health_check", AsyncMock(return_value=db_health)):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True

    checks = data["checks"]
    assert checks["database"]["ok"] is True
    assert checks["database"]["pool_size"] == 5
    assert checks["configuration"]["ok"] is True
    assert checks["configuration"]["utc_offset_minutes"] == 330


def test_readyz_endpoint_database_unhealthy():
    """Test readiness endpoint when the pool reports unhealthy."""
    db_health = {"healthy": False, "error": "Pool not initialized"}
    with patch("app.routes.health.db_health_check", AsyncMock(return_value=db_health)):
        response = client.get("/readyz")

    # Should still return 200, but overall_ok should be False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["ok"] is False
    assert data["checks"]["database"]["error"] == "Pool not initialized"


def test_readyz_endpoint_database_check_raises():
    """Test readiness endpoint when the health check itself blows up."""
    with patch(
        "app.routes.health.db_health_check",
        AsyncMock(side_effect=ConnectionError("connection refused")),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert "ConnectionError" in data["checks"]["database"]["error"]


def test_readyz_endpoint_bad_configuration():
    """Test readiness endpoint flags inconsistent duration bounds."""
    with (
        patch("app.routes.health.db_health_check", AsyncMock(return_value={"healthy": True})),
        patch("app.routes.health.settings.SLOT_MIN_DURATION_MINUTES", 600),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["configuration"]["ok"] is False
    assert data["checks"]["configuration"]["issues"] == [
        "SLOT_MIN_DURATION_MINUTES exceeds SLOT_MAX_DURATION_MINUTES"
    ]
