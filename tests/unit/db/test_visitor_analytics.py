"""
Unit tests for the visitor analytics aggregates in db/readers/visitors.py.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from amoria_admin.db.readers.visitors import BROWSER_BUCKET, get_visit_analytics


def result(rows=None, scalar=None) -> MagicMock:
    res = MagicMock()
    res.mappings.return_value = rows or []
    res.scalar_one.return_value = scalar
    return res


@pytest.mark.unit
def test_browser_bucket_order() -> None:
    """Test that Chrome is matched first, since Chrome user agents also mention Safari."""
    sql = str(
        select(BROWSER_BUCKET).compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True})
    )

    assert sql.index("'Chrome'") < sql.index("'Firefox'") < sql.index("'Safari'") < sql.index("'Edge'")
    assert "NOT ILIKE" in sql
    assert "ELSE 'Other'" in sql


@pytest.mark.unit
def test_analytics_shape() -> None:
    conn = MagicMock()
    conn.execute.side_effect = [
        result([{"date": date(2024, 3, 2), "count": 5, "unique_visitors": 3}]),
        result([{"country": "Rwanda", "count": 4}]),
        result([{"page_url": "/", "count": 5}]),
        result(scalar=3),
        result([{"browser": "Chrome", "count": 4}, {"browser": "Other", "count": 1}]),
    ]

    analytics = get_visit_analytics(conn, date(2024, 3, 1), date(2024, 3, 31))

    assert analytics == {
        "daily_stats": [{"date": "2024-03-02", "count": 5, "unique_visitors": 3}],
        "top_countries": [{"country": "Rwanda", "count": 4}],
        "top_pages": [{"page_url": "/", "count": 5}],
        "unique_visitors": 3,
        "browser_stats": [{"browser": "Chrome", "count": 4}, {"browser": "Other", "count": 1}],
        "date_range": {"start": "2024-03-01", "end": "2024-03-31"},
    }


@pytest.mark.unit
def test_analytics_without_dates() -> None:
    conn = MagicMock()
    conn.execute.side_effect = [result(), result(), result(), result(scalar=0), result()]

    analytics = get_visit_analytics(conn, None, None)

    assert analytics["unique_visitors"] == 0
    assert analytics["browser_stats"] == []
    assert analytics["date_range"] == {"start": None, "end": None}
