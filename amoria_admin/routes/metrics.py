"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP amoria_emails_sent_total Transactional emails handed to Brevo
        # TYPE amoria_emails_sent_total counter
        amoria_emails_sent_total{kind="otp",outcome="success"} 3.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Current metric values in the Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
