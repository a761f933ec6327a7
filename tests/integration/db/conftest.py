"""
Shared fixtures for database integration tests.

These tests run the readers and writers against the PostgreSQL server named
by DATABASE_URL. The admin tables are created when missing; every fixture
deletes exactly the rows it seeded. The whole directory is skipped when the
server cannot be reached.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Generator

import pytest
from sqlalchemy import text

from amoria_admin.db.engine import check_engine_health, engine
from amoria_admin.models.activity_logs import ActivityLog
from amoria_admin.models.base import Base
from amoria_admin.models.messages import ContactMessage
from amoria_admin.models.team_members import TeamMember
from amoria_admin.models.visitors import VisitorVisit

ADMIN_TABLES = [
    ContactMessage.__table__,
    TeamMember.__table__,
    ActivityLog.__table__,
    VisitorVisit.__table__,
]


@pytest.fixture(scope="session", autouse=True)
def admin_tables() -> None:
    """Skip without a reachable database, otherwise make sure the tables exist."""
    if not check_engine_health(engine):
        pytest.skip("PostgreSQL is not reachable at DATABASE_URL")
    Base.metadata.create_all(engine, tables=ADMIN_TABLES, checkfirst=True)


@pytest.fixture
def marker() -> str:
    """Unique text used to find this test's rows among any existing data."""
    return f"pytest-{uuid.uuid4().hex[:10]}"


@pytest.fixture
def seeded_messages(marker: str) -> Generator[dict[str, int], None, None]:
    """
    Insert one contact message per derived state.

    Returns a mapping of label to row id:
    new, replied, closed (resolved without reply), closed_replied (resolved with reply).
    """
    rows = {
        "new": (None, False, datetime(2024, 1, 1, 12, tzinfo=timezone.utc)),
        "replied": ("Thanks, sorted.", False, datetime(2024, 1, 2, 12, tzinfo=timezone.utc)),
        "closed": (None, True, datetime(2024, 1, 3, 12, tzinfo=timezone.utc)),
        "closed_replied": ("Done.", True, datetime(2024, 1, 4, 12, tzinfo=timezone.utc)),
    }
    ids: dict[str, int] = {}

    with engine.begin() as conn:
        for label, (reply, resolved, created_at) in rows.items():
            ids[label] = conn.execute(
                text(
                    """
                    INSERT INTO contact_us
                    (name, email, message, admin_reply, is_resolved, created_at, updated_at)
                    VALUES (:name, :email, :message, :reply, :resolved, :created_at, :created_at)
                    RETURNING id
                    """
                ),
                {
                    "name": f"{marker} {label}",
                    "email": f"{label}@example.com",
                    "message": f"Question about a booking ({label})",
                    "reply": reply,
                    "resolved": resolved,
                    "created_at": created_at,
                },
            ).scalar_one()

    yield ids

    with engine.begin() as conn:
        conn.execute(text("DELETE FROM contact_us WHERE name LIKE :pattern"), {"pattern": f"{marker}%"})


@pytest.fixture
def team_member(marker: str) -> Generator[dict[str, Any], None, None]:
    """Active team member whose username is unique to the test; removes its activity rows too."""
    username = marker.replace("-", "_")
    with engine.begin() as conn:
        member_id = conn.execute(
            text(
                """
                INSERT INTO team_members (username, email, full_name, status)
                VALUES (:username, :email, 'Test Member', true)
                RETURNING id
                """
            ),
            {"username": username, "email": f"{username}@example.com"},
        ).scalar_one()

    yield {"id": member_id, "username": username, "email": f"{username}@example.com"}

    with engine.begin() as conn:
        conn.execute(
            text("DELETE FROM activity_logs WHERE details->>'username' IN (:username, :upper)"),
            {"username": username, "upper": username.upper()},
        )
        conn.execute(text("DELETE FROM activity_logs WHERE resource_id = :id"), {"id": member_id})
        conn.execute(text("DELETE FROM team_members WHERE id = :id"), {"id": member_id})


@pytest.fixture
def seeded_visits(marker: str) -> Generator[str, None, None]:
    """
    Insert visits from one uniquely named country across 1999-03-01..04.

    Returns the country name.
    """
    visits = [
        ("10.0.0.1", "/", "Mozilla/5.0 Chrome/120.0 Safari/537.36", datetime(1999, 3, 1, 12, tzinfo=timezone.utc)),
        ("10.0.0.1", "/tours", "Mozilla/5.0 Firefox/121.0", datetime(1999, 3, 2, 12, tzinfo=timezone.utc)),
        ("10.0.0.2", "/", "Mozilla/5.0 Version/17.0 Safari/605.1.15", datetime(1999, 3, 3, 10, tzinfo=timezone.utc)),
        ("10.0.0.3", "/", "curl/8.4.0", datetime(1999, 3, 3, 14, tzinfo=timezone.utc)),
        ("10.0.0.2", "/stays", None, datetime(1999, 3, 4, 12, tzinfo=timezone.utc)),
    ]
    with engine.begin() as conn:
        for ip, page, agent, created_at in visits:
            conn.execute(
                text(
                    """
                    INSERT INTO visitor_tracking (ip_address, country, page_url, user_agent, created_at)
                    VALUES (:ip, :country, :page, :agent, :created_at)
                    """
                ),
                {"ip": ip, "country": marker, "page": page, "agent": agent, "created_at": created_at},
            )

    yield marker

    with engine.begin() as conn:
        conn.execute(text("DELETE FROM visitor_tracking WHERE country = :country"), {"country": marker})
