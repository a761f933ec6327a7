"""
Unit tests for the contact_us status filters and serialisation.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql

from amoria_admin.db.readers.messages import build_message_query, serialize_message
from amoria_admin.db.writers.messages import status_changes


def where_sql(status=None, search=None, search_ids=False) -> str:
    stmt = build_message_query(status, search, search_ids=search_ids).count_statement()
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.unit
def test_new_filter_requires_unresolved_and_no_reply() -> None:
    sql = where_sql("new")

    assert "contact_us.is_resolved IS false" in sql
    assert "contact_us.admin_reply IS NULL" in sql


@pytest.mark.unit
def test_replied_filter_requires_reply_and_unresolved() -> None:
    sql = where_sql("replied")

    assert "contact_us.admin_reply IS NOT NULL" in sql
    assert "contact_us.is_resolved IS false" in sql


@pytest.mark.unit
def test_closed_filter_ignores_reply() -> None:
    """Test that closed matches resolved rows whether or not they have a reply."""
    sql = where_sql("closed")

    assert "contact_us.is_resolved IS true" in sql
    assert "admin_reply" not in sql


@pytest.mark.unit
@pytest.mark.parametrize("status", [None, "all", "archived"])
def test_all_and_unknown_status_do_not_filter(status) -> None:
    assert "WHERE" not in where_sql(status)


@pytest.mark.unit
def test_search_matches_text_fields_only_for_contact() -> None:
    sql = where_sql(search="jane")

    assert "contact_us.name ILIKE" in sql
    assert "contact_us.email ILIKE" in sql
    assert "contact_us.message ILIKE" in sql
    assert "CAST(contact_us.id AS VARCHAR)" not in sql


@pytest.mark.unit
def test_search_matches_id_for_support() -> None:
    assert "CAST(contact_us.id AS VARCHAR) ILIKE" in where_sql(search="42", search_ids=True)


@pytest.mark.unit
def test_status_changes_for_each_status() -> None:
    replied = status_changes("replied", "Thanks!")
    assert replied["admin_reply"] == "Thanks!"
    assert replied["is_resolved"] is False
    assert "replied_at" in replied

    assert status_changes("closed", None) == {"is_resolved": True}
    assert status_changes("new", None) == {"is_resolved": False, "admin_reply": None, "replied_at": None}


@pytest.mark.unit
def test_replied_without_text_changes_nothing() -> None:
    assert status_changes("replied", None) == {}
    assert status_changes("bogus", "text") == {}


@pytest.mark.unit
def test_serialize_message_renders_id_and_dates_as_strings() -> None:
    created = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    row = {
        "id": 7,
        "name": "Jane",
        "email": "jane@example.com",
        "phone": None,
        "message": "Hello",
        "status": "new",
        "createdAt": created,
        "repliedAt": None,
        "adminReply": None,
    }

    result = serialize_message(row)

    assert result["id"] == "7"
    assert result["createdAt"] == created.isoformat()
    assert result["repliedAt"] is None
