"""
Support desk over the contact inbox.

Same table as the contact routes, plus per-status counters, id search,
ticket deletion and a reply flow where a failed email does not fail the
request. Every body embeds ``status`` and ``timestamp`` for the support UI.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from amoria_admin.db.engine import check_engine_health
from amoria_admin.db.query import build_pagination, clamp_pagination
from amoria_admin.db.readers.messages import check_table_access, get_message_stats, list_messages
from amoria_admin.db.writers.messages import delete_message, save_reply, update_message_status
from amoria_admin.dependencies import get_db_engine
from amoria_admin.errors import error_response
from amoria_admin.metrics import db_errors
from amoria_admin.routes._message_helpers import row_to_json, success_response
from amoria_admin.schemas.messages import MessageReplyPayload, MessageStatusPayload
from amoria_admin.services.email import send_custom_reply

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/support")
def list_support_tickets(
    status: Optional[str] = Query(None, description="all, new, replied or closed"),
    search: Optional[str] = Query(None, description="Substring of name, email, message or id"),
    sort: str = Query("newest", description="newest or oldest"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    List support tickets with stats and pagination.

    The database and the table are probed first so the UI can tell a
    connection outage from a missing table.
    """
    page_limit, page_offset = clamp_pagination(limit, offset)
    logger.debug(
        "support_list_requested", status=status, search=search, sort=sort, limit=page_limit, offset=page_offset
    )

    if not check_engine_health(engine):
        logger.error("support_database_unreachable")
        return error_response(500, "Database connection failed", with_status=True)

    try:
        with engine.connect() as conn:
            check_table_access(conn)
    except Exception as e:
        db_errors.labels(route="support").inc()
        logger.exception("support_table_unreadable", error=str(e))
        return error_response(500, "Database table access failed", e, with_status=True)

    try:
        with engine.connect() as conn:
            tickets, total = list_messages(
                conn, status, search, sort, page_limit, page_offset, search_ids=True
            )
            stats = get_message_stats(conn)

        return success_response(
            f"Found {len(tickets)} support tickets",
            tickets,
            with_status=True,
            stats=stats,
            pagination=build_pagination(total, page_limit, page_offset),
        )
    except Exception as e:
        db_errors.labels(route="support").inc()
        logger.exception("support_tickets_fetch_failed", error=str(e))
        return error_response(500, "Failed to fetch support messages", e, with_status=True)


@router.patch("/support")
def update_support_ticket(
    payload: MessageStatusPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """Change a ticket's status (same transitions as contact messages)."""
    if not payload.message_id:
        return error_response(400, "Message ID is required", with_status=True)

    try:
        with engine.begin() as conn:
            row = update_message_status(conn, payload.message_id, payload.status, payload.admin_reply)

        if row is None:
            logger.info("support_ticket_not_found", message_id=payload.message_id)
            return error_response(404, "Support ticket not found", with_status=True)

        logger.info("support_ticket_updated", message_id=payload.message_id, status=payload.status)
        return success_response("Support ticket updated successfully", row_to_json(row), with_status=True)
    except Exception as e:
        db_errors.labels(route="support").inc()
        logger.exception("support_ticket_update_failed", message_id=payload.message_id, error=str(e))
        return error_response(500, "Failed to update support ticket", e, with_status=True)


@router.post("/support")
def reply_to_support_ticket(
    payload: MessageReplyPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Store a reply on a ticket and email it.

    The email is best effort: a Brevo failure is logged and the stored reply
    is still reported as sent.
    """
    if payload.missing_fields():
        return error_response(
            400, "Missing required fields: messageId, to, subject, message", with_status=True
        )

    try:
        with engine.begin() as conn:
            row = save_reply(conn, payload.message_id, payload.message)

        if row is None:
            return error_response(404, "Support ticket not found", with_status=True)

        try:
            send_custom_reply(payload.to, row["name"], payload.subject, payload.message)
        except Exception as email_error:
            logger.warning(
                "support_reply_email_failed", message_id=payload.message_id, error=str(email_error)
            )

        logger.info("support_ticket_replied", message_id=payload.message_id, admin_id=payload.admin_id)
        return success_response("Support reply sent successfully", row_to_json(row), with_status=True)
    except Exception as e:
        db_errors.labels(route="support").inc()
        logger.exception("support_reply_failed", message_id=payload.message_id, error=str(e))
        return error_response(500, "Failed to send support reply", e, with_status=True)


@router.delete("/support")
def delete_support_ticket(
    message_id: Optional[int] = Query(None, alias="messageId"),
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """Permanently delete a ticket and return the deleted row."""
    if not message_id:
        return error_response(400, "Message ID is required", with_status=True)

    try:
        with engine.begin() as conn:
            row = delete_message(conn, message_id)

        if row is None:
            return error_response(404, "Support ticket not found", with_status=True)

        logger.info("support_ticket_deleted", message_id=message_id)
        return success_response("Support ticket deleted successfully", row_to_json(row), with_status=True)
    except Exception as e:
        db_errors.labels(route="support").inc()
        logger.exception("support_ticket_delete_failed", message_id=message_id, error=str(e))
        return error_response(500, "Failed to delete support ticket", e, with_status=True)
