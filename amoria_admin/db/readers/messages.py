"""Read queries over ``contact_us`` for the contact and support listings."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import String, case, cast, func, or_, select
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.sql import ColumnElement

from amoria_admin.db.query import ListQuery
from amoria_admin.metrics import db_queries
from amoria_admin.models.messages import ContactMessage
from amoria_admin.utils.datetime import isoformat_or_none

TABLE = ContactMessage.__tablename__

STATUS_NEW = "new"
STATUS_REPLIED = "replied"
STATUS_CLOSED = "closed"

derived_status = case(
    (ContactMessage.admin_reply.is_not(None), STATUS_REPLIED),
    (ContactMessage.is_resolved.is_(True), STATUS_CLOSED),
    else_=STATUS_NEW,
)

STATUS_CLAUSES: dict[str, list[ColumnElement[bool]]] = {
    STATUS_NEW: [
        ContactMessage.is_resolved.is_(False),
        ContactMessage.admin_reply.is_(None),
    ],
    STATUS_REPLIED: [
        ContactMessage.admin_reply.is_not(None),
        ContactMessage.is_resolved.is_(False),
    ],
    STATUS_CLOSED: [ContactMessage.is_resolved.is_(True)],
}

SORT_ORDERS = {
    "newest": ContactMessage.created_at.desc(),
    "oldest": ContactMessage.created_at.asc(),
}

MESSAGE_COLUMNS = [
    ContactMessage.id,
    ContactMessage.name,
    ContactMessage.email,
    ContactMessage.phone_number.label("phone"),
    ContactMessage.message,
    derived_status.label("status"),
    ContactMessage.created_at.label("createdAt"),
    ContactMessage.replied_at.label("repliedAt"),
    ContactMessage.admin_reply.label("adminReply"),
]


def build_message_query(
    status: Optional[str],
    search: Optional[str],
    search_ids: bool = False,
) -> ListQuery:
    """
    Build the filtered message query shared by the list and count statements.

    Args:
        status: all, new, replied or closed. Unknown values do not filter.
        search: Case-insensitive substring matched against name, email and message
        search_ids: Also match the id rendered as text (support ticket search)
    """
    query = ListQuery(ContactMessage.__table__, MESSAGE_COLUMNS)

    if status and status != "all":
        query.where(*STATUS_CLAUSES.get(status, []))

    if search:
        pattern = f"%{search}%"
        fields = [ContactMessage.name, ContactMessage.email, ContactMessage.message]
        if search_ids:
            fields.append(cast(ContactMessage.id, String))
        query.where(or_(*(field.ilike(pattern) for field in fields)))

    return query


def serialize_message(row: RowMapping) -> dict[str, Any]:
    return {
        "id": str(row["id"]),
        "name": row["name"],
        "email": row["email"],
        "phone": row["phone"],
        "message": row["message"],
        "status": row["status"],
        "createdAt": isoformat_or_none(row["createdAt"]),
        "repliedAt": isoformat_or_none(row["repliedAt"]),
        "adminReply": row["adminReply"],
    }


def list_messages(
    conn: Connection,
    status: Optional[str],
    search: Optional[str],
    sort: Optional[str],
    limit: int,
    offset: int,
    search_ids: bool = False,
) -> tuple[list[dict[str, Any]], int]:
    """
    Fetch one page of messages and the total matching the same filters.

    Returns:
        tuple: (serialised messages, total matching rows)
    """
    query = build_message_query(status, search, search_ids=search_ids)
    order_by = SORT_ORDERS.get(sort or "newest")

    rows = conn.execute(query.page_statement(order_by, limit, offset)).mappings().all()
    db_queries.labels(table=TABLE, operation="select").inc()

    total = conn.execute(query.count_statement()).scalar_one()
    db_queries.labels(table=TABLE, operation="count").inc()

    return [serialize_message(row) for row in rows], int(total)


def get_message_stats(conn: Connection) -> dict[str, int]:
    """Counts of all messages by derived status, ignoring any list filters."""
    stmt = select(
        func.count().label("total"),
        func.count().filter(*STATUS_CLAUSES[STATUS_NEW]).label(STATUS_NEW),
        func.count().filter(*STATUS_CLAUSES[STATUS_REPLIED]).label(STATUS_REPLIED),
        func.count().filter(*STATUS_CLAUSES[STATUS_CLOSED]).label(STATUS_CLOSED),
    ).select_from(ContactMessage.__table__)

    row = conn.execute(stmt).mappings().one()
    db_queries.labels(table=TABLE, operation="count").inc()

    return {key: int(row[key] or 0) for key in ("total", STATUS_NEW, STATUS_REPLIED, STATUS_CLOSED)}


def check_table_access(conn: Connection) -> int:
    """Probe the table (raises if it is missing or unreadable) and return its row count."""
    total = conn.execute(select(func.count()).select_from(ContactMessage.__table__)).scalar_one()
    return int(total)
