"""
Integration tests for the /api/support routes.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from amoria_admin.errors import EmailError

ROW = {"id": 12, "name": "Sam", "email": "sam@example.com", "admin_reply": "Done"}
STATS = {"total": 4, "new": 2, "replied": 1, "closed": 1}


@pytest.fixture
def healthy_db():
    with patch("amoria_admin.routes.support.check_engine_health", return_value=True), patch(
        "amoria_admin.routes.support.check_table_access", return_value=4
    ):
        yield


@pytest.mark.integration
@patch("amoria_admin.routes.support.get_message_stats", return_value=STATS)
@patch("amoria_admin.routes.support.list_messages")
def test_list_includes_stats_status_and_timestamp(
    mock_list: Mock, mock_stats: Mock, healthy_db: None, client: TestClient
) -> None:
    mock_list.return_value = ([{"id": "12"}, {"id": "13"}], 2)

    response = client.get("/api/support", params={"search": "12"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Found 2 support tickets"
    assert body["stats"] == STATS
    assert body["status"] == 200
    assert "timestamp" in body
    assert body["pagination"]["total"] == 2
    assert mock_list.call_args[1]["search_ids"] is True


@pytest.mark.integration
@patch("amoria_admin.routes.support.check_engine_health", return_value=False)
def test_list_reports_database_outage(mock_health: Mock, client: TestClient) -> None:
    response = client.get("/api/support")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Database connection failed"
    assert body["status"] == 500


@pytest.mark.integration
@patch("amoria_admin.routes.support.check_table_access", side_effect=RuntimeError("no table"))
@patch("amoria_admin.routes.support.check_engine_health", return_value=True)
def test_list_reports_table_failure(mock_health: Mock, mock_table: Mock, client: TestClient) -> None:
    response = client.get("/api/support")

    assert response.status_code == 500
    assert response.json()["message"] == "Database table access failed"


@pytest.mark.integration
@patch("amoria_admin.routes.support.update_message_status", return_value=None)
def test_patch_unknown_ticket(mock_update: Mock, client: TestClient) -> None:
    response = client.patch("/api/support", json={"messageId": 99, "status": "closed"})

    assert response.status_code == 404
    assert response.json()["message"] == "Support ticket not found"


@pytest.mark.integration
@patch("amoria_admin.routes.support.send_custom_reply", side_effect=EmailError("brevo down"))
@patch("amoria_admin.routes.support.save_reply", return_value=ROW)
def test_reply_succeeds_when_email_fails(mock_save: Mock, mock_send: Mock, client: TestClient) -> None:
    """Test that the stored reply is reported even though the email was not sent."""
    payload = {"messageId": 12, "to": "sam@example.com", "subject": "Re: ticket", "message": "Done"}

    response = client.post("/api/support", json=payload)

    assert response.status_code == 200
    assert response.json()["message"] == "Support reply sent successfully"
    mock_send.assert_called_once()


@pytest.mark.integration
def test_reply_missing_fields(client: TestClient) -> None:
    response = client.post("/api/support", json={"messageId": 12})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: messageId, to, subject, message"


@pytest.mark.integration
@patch("amoria_admin.routes.support.delete_message", return_value=ROW)
def test_delete_returns_deleted_row(mock_delete: Mock, client: TestClient) -> None:
    response = client.delete("/api/support", params={"messageId": 12})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Support ticket deleted successfully"
    assert body["data"]["id"] == 12
    assert mock_delete.call_args[0][1] == 12


@pytest.mark.integration
@patch("amoria_admin.routes.support.delete_message", return_value=None)
def test_delete_unknown_ticket(mock_delete: Mock, client: TestClient) -> None:
    response = client.delete("/api/support", params={"messageId": 404})

    assert response.status_code == 404


@pytest.mark.integration
def test_delete_requires_id(client: TestClient) -> None:
    response = client.delete("/api/support")

    assert response.status_code == 400
    assert response.json()["message"] == "Message ID is required"
