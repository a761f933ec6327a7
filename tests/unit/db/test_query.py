"""
Unit tests for db/query.py list query building and pagination.
"""

from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql

from amoria_admin.db.query import ListQuery, build_pagination, clamp_pagination
from amoria_admin.models.messages import ContactMessage


def compile_sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.unit
@pytest.mark.parametrize(
    "limit,offset,expected",
    [
        ("99999", "0", (500, 0)),
        ("20", "40", (20, 40)),
        (None, None, (100, 0)),
        ("abc", "xyz", (100, 0)),
        ("-5", "-10", (0, 0)),
        ("0", "3", (0, 3)),
    ],
)
def test_clamp_pagination(limit, offset, expected) -> None:
    """Test that limit is clamped to [0, 500] and offset floored at 0."""
    assert clamp_pagination(limit, offset) == expected


@pytest.mark.unit
def test_clamp_pagination_honours_custom_cap() -> None:
    """Test that the overview cap of 1000 can be passed explicitly."""
    assert clamp_pagination("5000", 0, cap=1000) == (1000, 0)


@pytest.mark.unit
def test_build_pagination_computes_pages_and_current_page() -> None:
    """Test pages = ceil(total / limit) and currentPage = offset // limit + 1."""
    assert build_pagination(45, 20, 20) == {
        "total": 45,
        "limit": 20,
        "offset": 20,
        "pages": 3,
        "currentPage": 2,
    }


@pytest.mark.unit
def test_build_pagination_zero_limit() -> None:
    """Test that a zero limit yields no pages instead of dividing by zero."""
    pagination = build_pagination(10, 0, 0)

    assert pagination["pages"] == 0
    assert pagination["currentPage"] == 1


@pytest.mark.unit
def test_count_statement_shares_where_clauses_with_page_statement() -> None:
    """Test that a filter added once is applied to both statements."""
    query = ListQuery(ContactMessage.__table__, [ContactMessage.id])
    query.where(ContactMessage.is_resolved.is_(True), ContactMessage.email.ilike("%a%"))

    page_sql = compile_sql(query.page_statement(ContactMessage.created_at.desc(), 10, 0))
    count_sql = compile_sql(query.count_statement())

    for sql in (page_sql, count_sql):
        assert "contact_us.is_resolved IS true" in sql
        assert "contact_us.email ILIKE" in sql
    assert "ORDER BY contact_us.created_at DESC" in page_sql
    assert "LIMIT" in page_sql
    assert "count(*)" in count_sql
    assert "LIMIT" not in count_sql


@pytest.mark.unit
def test_page_statement_without_order_by() -> None:
    """Test that a None ordering leaves the statement unordered."""
    query = ListQuery(ContactMessage.__table__, [ContactMessage.id])

    assert "ORDER BY" not in compile_sql(query.page_statement(None, 10, 0))
