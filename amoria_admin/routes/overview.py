"""Visitor tracking overview for the dashboard landing page."""

from datetime import date
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from amoria_admin.config import MAX_OVERVIEW_LIMIT
from amoria_admin.db.query import build_pagination, clamp_pagination
from amoria_admin.db.readers.visitors import get_visit_analytics, list_visits
from amoria_admin.dependencies import get_db_engine
from amoria_admin.errors import error_response
from amoria_admin.metrics import db_errors
from amoria_admin.routes._message_helpers import success_response

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/overview")
def visitor_overview(
    country: Optional[str] = Query(None, description="Substring of the visitor country"),
    start_date: Optional[date] = Query(None, description="First day included (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Last day included (YYYY-MM-DD)"),
    limit: Optional[str] = Query(None, description="Page size, capped at 1000"),
    offset: Optional[str] = Query(None),
    analytics: bool = Query(False, description="Include the dashboard chart aggregates"),
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    List tracked visits, newest first.

    With ``analytics=true`` the body also carries the chart aggregates. They
    are computed after the page and a failure there leaves ``analytics`` null.
    """
    page_limit, page_offset = clamp_pagination(limit, offset, cap=MAX_OVERVIEW_LIMIT)

    try:
        with engine.connect() as conn:
            visits, total = list_visits(conn, country, start_date, end_date, page_limit, page_offset)
    except Exception as e:
        db_errors.labels(route="overview").inc()
        logger.exception("visitor_overview_failed", error=str(e))
        return error_response(500, "Failed to fetch visitor data", e)

    extra = {}
    if analytics:
        try:
            with engine.connect() as conn:
                extra["analytics"] = get_visit_analytics(conn, start_date, end_date)
        except Exception as e:
            logger.warning("visitor_analytics_failed", error=str(e))
            extra["analytics"] = None

    return success_response(
        data=visits,
        pagination=build_pagination(total, page_limit, page_offset),
        **extra,
    )
