from typing import Any, Optional

import structlog
from sqlalchemy import func, insert
from sqlalchemy.engine import Connection

from amoria_admin.metrics import db_queries
from amoria_admin.models.activity_logs import ActivityLog

logger = structlog.get_logger(__name__)


def insert_activity(
    conn: Connection,
    action: str,
    resource_type: str,
    resource_id: Optional[int],
    details: dict[str, Any],
) -> None:
    """
    Append one row to the activity log.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        action (str): Event name (otp_requested, otp_resent, logout).
        resource_type (str): Kind of resource the event concerns, e.g. ``auth``.
        resource_id (Optional[int]): Id of the team member involved, if known.
        details (dict): JSON payload stored in ``details``.
    """
    conn.execute(
        insert(ActivityLog).values(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            created_at=func.now(),
        )
    )
    db_queries.labels(table=ActivityLog.__tablename__, operation="insert").inc()
    logger.debug("activity_logged", action=action, resource_id=resource_id)
