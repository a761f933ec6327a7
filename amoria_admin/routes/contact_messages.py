"""Contact form inbox: list, change status and reply by email."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from amoria_admin.db.query import build_pagination, clamp_pagination
from amoria_admin.db.readers.messages import list_messages
from amoria_admin.db.writers.messages import save_reply, update_message_status
from amoria_admin.dependencies import get_db_engine
from amoria_admin.errors import error_response
from amoria_admin.metrics import db_errors
from amoria_admin.routes._message_helpers import row_to_json, success_response
from amoria_admin.schemas.messages import MessageReplyPayload, MessageStatusPayload
from amoria_admin.services.email import send_custom_reply

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/contact_messages")
def list_contact_messages(
    status: Optional[str] = Query(None, description="all, new, replied or closed"),
    search: Optional[str] = Query(None, description="Substring of name, email or message"),
    sort: str = Query("newest", description="newest or oldest"),
    limit: Optional[str] = Query(None, description="Page size, capped at 500"),
    offset: Optional[str] = Query(None, description="Rows to skip"),
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    List contact messages with status filter, search and pagination.

    Returns:
        JSONResponse: ``{success, data, pagination}``
    """
    page_limit, page_offset = clamp_pagination(limit, offset)
    try:
        with engine.connect() as conn:
            messages, total = list_messages(conn, status, search, sort, page_limit, page_offset)

        return success_response(
            data=messages,
            pagination=build_pagination(total, page_limit, page_offset),
        )
    except Exception as e:
        db_errors.labels(route="contact_messages").inc()
        logger.exception("contact_messages_fetch_failed", error=str(e))
        return error_response(500, "Failed to fetch contact messages", e)


@router.patch("/contact_messages")
def update_contact_message(
    payload: MessageStatusPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Change a message's status.

    ``replied`` stores ``adminReply``; ``closed`` resolves the message; ``new``
    reopens it and clears any reply.
    """
    if not payload.message_id:
        return error_response(400, "Message ID is required")

    try:
        with engine.begin() as conn:
            row = update_message_status(conn, payload.message_id, payload.status, payload.admin_reply)

        if row is None:
            return error_response(404, "Message not found")

        logger.info("contact_message_updated", message_id=payload.message_id, status=payload.status)
        return success_response("Message status updated successfully", row_to_json(row))
    except Exception as e:
        db_errors.labels(route="contact_messages").inc()
        logger.exception("contact_message_update_failed", message_id=payload.message_id, error=str(e))
        return error_response(500, "Failed to update message status", e)


@router.post("/contact_messages")
def reply_to_contact_message(
    payload: MessageReplyPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Store an admin reply and email it to the sender.

    The reply is committed before the email is sent; an email failure
    answers 500.
    """
    if payload.missing_fields():
        return error_response(400, "Missing required fields")

    try:
        with engine.begin() as conn:
            row = save_reply(conn, payload.message_id, payload.message)

        if row is None:
            return error_response(404, "Message not found")

        send_custom_reply(payload.to, row["name"], payload.subject, payload.message)

        logger.info("contact_message_replied", message_id=payload.message_id)
        return success_response("Reply sent successfully", row_to_json(row))
    except Exception as e:
        db_errors.labels(route="contact_messages").inc()
        logger.exception("contact_message_reply_failed", message_id=payload.message_id, error=str(e))
        return error_response(500, "Failed to send reply", e)
