"""
Integration tests for team member lookups, activity logging and the OTP
resend throttle against PostgreSQL.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import select, text

from amoria_admin.db.engine import engine
from amoria_admin.db.readers.activity_logs import count_recent_actions
from amoria_admin.db.readers.team_members import get_active_member, get_member_id
from amoria_admin.db.writers.activity_logs import insert_activity
from amoria_admin.models.activity_logs import ActivityLog
from amoria_admin.services.otp import (
    ACTION_LOGOUT,
    ACTION_REQUESTED,
    ACTION_RESENT,
    ResendLimitExceeded,
    log_logout,
    request_member_otp,
    resend_member_otp,
)
from amoria_admin.utils.datetime import utc_now


def actions_for(member_id: int) -> list[str]:
    with engine.connect() as conn:
        return list(
            conn.execute(
                select(ActivityLog.action).where(ActivityLog.resource_id == member_id).order_by(ActivityLog.id)
            ).scalars()
        )


@pytest.mark.integration
def test_member_lookups_respect_active_flag(team_member: dict[str, Any]) -> None:
    with engine.begin() as conn:
        assert get_active_member(conn, team_member["username"].upper())["id"] == team_member["id"]

        conn.execute(text("UPDATE team_members SET status = false WHERE id = :id"), {"id": team_member["id"]})

        assert get_active_member(conn, team_member["username"]) is None
        assert get_member_id(conn, team_member["username"]) == team_member["id"]


@pytest.mark.integration
def test_count_recent_actions_reads_username_from_details(team_member: dict[str, Any]) -> None:
    """Test that only recent rows of the action for this username are counted."""
    username = team_member["username"]
    with engine.begin() as conn:
        for action, name in [
            (ACTION_RESENT, username),
            (ACTION_RESENT, username),
            (ACTION_REQUESTED, username),
            (ACTION_RESENT, username.upper()),
        ]:
            insert_activity(
                conn,
                action=action,
                resource_type="auth",
                resource_id=team_member["id"],
                details={"username": name},
            )
        conn.execute(
            text(
                "INSERT INTO activity_logs (action, resource_type, resource_id, details, created_at) "
                "VALUES (:action, 'auth', :id, CAST(:details AS jsonb), NOW() - INTERVAL '1 hour')"
            ),
            {"action": ACTION_RESENT, "id": team_member["id"], "details": f'{{"username": "{username}"}}'},
        )

    with engine.connect() as conn:
        count = count_recent_actions(conn, ACTION_RESENT, username.upper(), utc_now() - timedelta(minutes=15))

    assert count == 2


@pytest.mark.integration
@patch("amoria_admin.services.otp.send_otp_email")
def test_resend_counts_down_then_limits(mock_send: Mock, team_member: dict[str, Any]) -> None:
    """Test that resends report 2, 1, 0 from real activity rows and the fourth is refused."""
    username = team_member["username"]

    request_member_otp(engine, username, "111111")
    remaining = [resend_member_otp(engine, username, "222222") for _ in range(3)]

    with pytest.raises(ResendLimitExceeded):
        resend_member_otp(engine, username, "333333")

    assert remaining == [2, 1, 0]
    assert mock_send.call_count == 4
    assert actions_for(team_member["id"]) == [ACTION_REQUESTED] + [ACTION_RESENT] * 3


@pytest.mark.integration
def test_logout_resolves_member_and_records_details(team_member: dict[str, Any]) -> None:
    assert log_logout(engine, team_member["username"], None, "Mozilla/5.0") is True

    with engine.connect() as conn:
        row = conn.execute(
            select(ActivityLog.action, ActivityLog.resource_id, ActivityLog.details).where(
                ActivityLog.resource_id == team_member["id"]
            )
        ).one()

    assert row.action == ACTION_LOGOUT
    assert row.details["logout_method"] == "manual"
    assert row.details["user_agent"] == "Mozilla/5.0"
    assert row.details["username"] == team_member["username"]


@pytest.mark.integration
def test_logout_for_unknown_username_writes_nothing(marker: str) -> None:
    username = f"ghost_{marker}"

    assert log_logout(engine, username, None) is False

    with engine.connect() as conn:
        rows = conn.execute(
            select(ActivityLog.id).where(ActivityLog.details["username"].astext == username)
        ).all()
    assert rows == []
