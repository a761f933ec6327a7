"""Visitor tracking queries behind the overview dashboard."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy import and_, case, cast, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.sql import ColumnElement
from sqlalchemy.types import Date

from amoria_admin.db.query import ListQuery
from amoria_admin.metrics import db_queries
from amoria_admin.models.visitors import VisitorVisit
from amoria_admin.utils.datetime import isoformat_or_none

TABLE = VisitorVisit.__tablename__

VISIT_COLUMNS = [
    VisitorVisit.id,
    VisitorVisit.ip_address,
    VisitorVisit.country,
    VisitorVisit.city,
    VisitorVisit.region,
    VisitorVisit.timezone,
    VisitorVisit.page_url,
    VisitorVisit.referrer,
    VisitorVisit.created_at,
    VisitorVisit.user_agent,
]

ANALYTICS_DAYS = 30
TOP_N = 10

BROWSER_BUCKET = case(
    (VisitorVisit.user_agent.ilike("%chrome%"), "Chrome"),
    (VisitorVisit.user_agent.ilike("%firefox%"), "Firefox"),
    (
        and_(VisitorVisit.user_agent.ilike("%safari%"), VisitorVisit.user_agent.not_ilike("%chrome%")),
        "Safari",
    ),
    (VisitorVisit.user_agent.ilike("%edge%"), "Edge"),
    else_="Other",
).label("browser")


def _date_window(start_date: Optional[date], end_date: Optional[date]) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if start_date:
        clauses.append(VisitorVisit.created_at >= start_date)
    if end_date:
        # end date is inclusive: everything before the next midnight
        clauses.append(VisitorVisit.created_at < end_date + timedelta(days=1))
    return clauses


def list_visits(
    conn: Connection,
    country: Optional[str],
    start_date: Optional[date],
    end_date: Optional[date],
    limit: int,
    offset: int,
) -> tuple[list[dict[str, Any]], int]:
    """Newest-first page of visits and the total matching the same filters."""
    query = ListQuery(VisitorVisit.__table__, VISIT_COLUMNS)
    if country:
        query.where(VisitorVisit.country.ilike(f"%{country}%"))
    if start_date:
        query.where(cast(VisitorVisit.created_at, Date) >= start_date)
    if end_date:
        query.where(cast(VisitorVisit.created_at, Date) <= end_date)

    rows = conn.execute(
        query.page_statement(VisitorVisit.created_at.desc(), limit, offset)
    ).mappings().all()
    db_queries.labels(table=TABLE, operation="select").inc()

    total = conn.execute(query.count_statement()).scalar_one()
    db_queries.labels(table=TABLE, operation="count").inc()

    visits = [{**row, "created_at": isoformat_or_none(row["created_at"])} for row in rows]
    return visits, int(total)


def get_visit_analytics(
    conn: Connection,
    start_date: Optional[date],
    end_date: Optional[date],
) -> dict[str, Any]:
    """
    Aggregate visits for the dashboard charts.

    Returns:
        dict: ``daily_stats`` (up to 30 most recent days with total and unique
        IPs), ``top_countries`` and ``top_pages`` (top 10 each),
        ``unique_visitors`` (distinct IPs), ``browser_stats`` (user agents
        bucketed into Chrome, Firefox, Safari, Edge and Other) and the
        ``date_range`` applied, all for the same window
    """
    window = _date_window(start_date, end_date)
    day = cast(VisitorVisit.created_at, Date)

    daily_stmt = (
        select(
            day.label("date"),
            func.count().label("count"),
            func.count(func.distinct(VisitorVisit.ip_address)).label("unique_visitors"),
        )
        .where(*window)
        .group_by(day)
        .order_by(day.desc())
        .limit(ANALYTICS_DAYS)
    )
    country_stmt = (
        select(VisitorVisit.country, func.count().label("count"))
        .where(VisitorVisit.country.is_not(None), VisitorVisit.country != "", *window)
        .group_by(VisitorVisit.country)
        .order_by(func.count().desc())
        .limit(TOP_N)
    )
    page_stmt = (
        select(VisitorVisit.page_url, func.count().label("count"))
        .where(VisitorVisit.page_url.is_not(None), *window)
        .group_by(VisitorVisit.page_url)
        .order_by(func.count().desc())
        .limit(TOP_N)
    )
    unique_stmt = select(func.count(func.distinct(VisitorVisit.ip_address))).where(*window)
    browser_stmt = (
        select(BROWSER_BUCKET, func.count().label("count"))
        .where(VisitorVisit.user_agent.is_not(None), *window)
        .group_by(BROWSER_BUCKET)
        .order_by(func.count().desc())
    )

    daily = [
        {
            "date": isoformat_or_none(row["date"]),
            "count": int(row["count"]),
            "unique_visitors": int(row["unique_visitors"]),
        }
        for row in conn.execute(daily_stmt).mappings()
    ]
    countries = [
        {"country": row["country"], "count": int(row["count"])}
        for row in conn.execute(country_stmt).mappings()
    ]
    pages = [
        {"page_url": row["page_url"], "count": int(row["count"])}
        for row in conn.execute(page_stmt).mappings()
    ]
    unique_visitors = conn.execute(unique_stmt).scalar_one()
    browsers = [
        {"browser": row["browser"], "count": int(row["count"])}
        for row in conn.execute(browser_stmt).mappings()
    ]
    db_queries.labels(table=TABLE, operation="select").inc(5)

    return {
        "daily_stats": daily,
        "top_countries": countries,
        "top_pages": pages,
        "unique_visitors": int(unique_visitors or 0),
        "browser_stats": browsers,
        "date_range": {"start": isoformat_or_none(start_date), "end": isoformat_or_none(end_date)},
    }
