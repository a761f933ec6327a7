from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from amoria_admin.metrics import db_queries
from amoria_admin.models.activity_logs import ActivityLog


def count_recent_actions(conn: Connection, action: str, username: str, since: datetime) -> int:
    """
    Count activity rows of one action for a username since a point in time.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        action (str): Action name, e.g. ``otp_resent``.
        username (str): Matched against ``details->>'username'`` (lower-cased).
        since (datetime): Exclusive lower bound on ``created_at``.

    Returns:
        int: Number of matching rows.
    """
    stmt = (
        select(func.count())
        .select_from(ActivityLog.__table__)
        .where(ActivityLog.action == action)
        .where(ActivityLog.details["username"].astext == username.lower())
        .where(ActivityLog.created_at > since)
    )
    total = conn.execute(stmt).scalar_one()
    db_queries.labels(table=ActivityLog.__tablename__, operation="count").inc()
    return int(total)
