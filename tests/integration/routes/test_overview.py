"""
Integration tests for the /api/overview visitor listing.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

VISITS = [{"id": 1, "country": "Rwanda", "created_at": "2024-03-01T08:00:00+00:00"}]


@pytest.mark.integration
@patch("amoria_admin.routes.overview.list_visits", return_value=(VISITS, 1))
def test_overview_passes_filters_and_caps_limit(mock_list: Mock, client: TestClient) -> None:
    response = client.get(
        "/api/overview",
        params={"country": "rwa", "start_date": "2024-03-01", "end_date": "2024-03-31", "limit": "5000"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == VISITS
    assert body["pagination"]["limit"] == 1000
    assert "analytics" not in body
    assert mock_list.call_args[0][1:] == ("rwa", date(2024, 3, 1), date(2024, 3, 31), 1000, 0)


@pytest.mark.integration
@patch("amoria_admin.routes.overview.get_visit_analytics")
@patch("amoria_admin.routes.overview.list_visits", return_value=(VISITS, 1))
def test_overview_with_analytics(mock_list: Mock, mock_analytics: Mock, client: TestClient) -> None:
    mock_analytics.return_value = {
        "daily_stats": [],
        "top_countries": [{"country": "Rwanda", "count": 1}],
        "top_pages": [],
        "unique_visitors": 1,
        "browser_stats": [{"browser": "Chrome", "count": 1}],
        "date_range": {"start": "2024-03-01", "end": None},
    }

    response = client.get("/api/overview", params={"analytics": "true", "start_date": "2024-03-01"})

    assert response.status_code == 200
    analytics = response.json()["analytics"]
    assert analytics["top_countries"] == [{"country": "Rwanda", "count": 1}]
    assert analytics["unique_visitors"] == 1
    assert analytics["browser_stats"] == [{"browser": "Chrome", "count": 1}]
    assert analytics["date_range"] == {"start": "2024-03-01", "end": None}
    assert mock_analytics.call_args[0][1:] == (date(2024, 3, 1), None)


@pytest.mark.integration
@patch("amoria_admin.routes.overview.get_visit_analytics", side_effect=RuntimeError("slow query"))
@patch("amoria_admin.routes.overview.list_visits", return_value=(VISITS, 1))
def test_overview_analytics_failure_is_best_effort(
    mock_list: Mock, mock_analytics: Mock, client: TestClient
) -> None:
    response = client.get("/api/overview", params={"analytics": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["analytics"] is None
    assert body["data"] == VISITS


@pytest.mark.integration
def test_overview_rejects_bad_dates(client: TestClient) -> None:
    response = client.get("/api/overview", params={"start_date": "yesterday"})

    assert response.status_code == 400
    assert response.json()["success"] is False
