"""Status, reply and delete statements for ``contact_us`` rows."""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, update
from sqlalchemy.engine import Connection

from amoria_admin.db.readers.messages import STATUS_CLOSED, STATUS_NEW, STATUS_REPLIED, TABLE
from amoria_admin.metrics import db_queries
from amoria_admin.models.messages import ContactMessage

logger = structlog.get_logger(__name__)


def status_changes(status: Optional[str], admin_reply: Optional[str]) -> dict[str, Any]:
    """
    Column values implied by a requested status.

    ``replied`` only applies together with a reply text; unknown statuses (or
    ``replied`` without text) change nothing beyond ``updated_at``.
    """
    if status == STATUS_REPLIED and admin_reply:
        return {
            "admin_reply": admin_reply,
            "replied_at": func.now(),
            "is_resolved": False,
        }
    if status == STATUS_CLOSED:
        return {"is_resolved": True}
    if status == STATUS_NEW:
        return {"is_resolved": False, "admin_reply": None, "replied_at": None}
    return {}


def update_message_status(
    conn: Connection,
    message_id: int,
    status: Optional[str],
    admin_reply: Optional[str] = None,
) -> Optional[dict[str, Any]]:
    """
    Apply a status change to one message.

    There is no version check: concurrent updates overwrite each other.

    Returns:
        Optional[dict]: The updated row, or None when no row has that id
    """
    values = {"updated_at": func.now(), **status_changes(status, admin_reply)}
    stmt = (
        update(ContactMessage)
        .where(ContactMessage.id == message_id)
        .values(**values)
        .returning(*ContactMessage.__table__.columns)
    )

    row = conn.execute(stmt).mappings().fetchone()
    db_queries.labels(table=TABLE, operation="update").inc()

    logger.debug("message_status_updated", message_id=message_id, status=status, found=bool(row))
    return dict(row) if row else None


def save_reply(conn: Connection, message_id: int, reply: str) -> Optional[dict[str, Any]]:
    """
    Store an admin reply and stamp ``replied_at``.

    Returns:
        Optional[dict]: The updated row, or None when no row has that id
    """
    stmt = (
        update(ContactMessage)
        .where(ContactMessage.id == message_id)
        .values(admin_reply=reply, replied_at=func.now(), updated_at=func.now())
        .returning(*ContactMessage.__table__.columns)
    )

    row = conn.execute(stmt).mappings().fetchone()
    db_queries.labels(table=TABLE, operation="update").inc()
    return dict(row) if row else None


def delete_message(conn: Connection, message_id: int) -> Optional[dict[str, Any]]:
    """
    Permanently delete a message.

    Returns:
        Optional[dict]: The deleted row, or None when no row has that id
    """
    stmt = (
        delete(ContactMessage)
        .where(ContactMessage.id == message_id)
        .returning(*ContactMessage.__table__.columns)
    )

    row = conn.execute(stmt).mappings().fetchone()
    db_queries.labels(table=TABLE, operation="delete").inc()
    return dict(row) if row else None
