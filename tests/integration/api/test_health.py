"""
Integration tests for health and readiness endpoints.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
def test_health_endpoint_returns_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
@patch("amoria_admin.routes.health.check_engine_health", return_value=True)
def test_readiness_endpoint_returns_ready(mock_health: Mock, client: TestClient, mock_engine: Mock) -> None:
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}
    mock_health.assert_called_once_with(mock_engine)


@pytest.mark.integration
@patch("amoria_admin.routes.health.check_engine_health", return_value=False)
def test_readiness_endpoint_returns_503_when_db_not_accessible(mock_health: Mock, client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not ready"
    assert data["checks"]["database"] == "failed"


@pytest.mark.integration
def test_request_id_header_present(client: TestClient) -> None:
    response = client.get("/health")

    assert len(response.headers["X-Request-ID"]) == 36
