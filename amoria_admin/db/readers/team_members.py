from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from amoria_admin.metrics import db_queries
from amoria_admin.models.team_members import TeamMember


def get_active_member(conn: Connection, username: str) -> Optional[dict[str, Any]]:
    """
    Fetch an active team member by username.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        username (str): Username as typed; matched lower-cased.

    Returns:
        Optional[dict]: id, username, email and full_name, or None if no active member matches
    """
    result = conn.execute(
        select(TeamMember.id, TeamMember.username, TeamMember.email, TeamMember.full_name)
        .where(TeamMember.username == username.lower())
        .where(TeamMember.status.is_(True))
    )
    db_queries.labels(table=TeamMember.__tablename__, operation="select").inc()

    row = result.mappings().fetchone()
    return dict(row) if row else None


def get_member_id(conn: Connection, username: str) -> Optional[int]:
    """Id of the team member with ``username`` (lower-cased), active or not."""
    result = conn.execute(select(TeamMember.id).where(TeamMember.username == username.lower()))
    db_queries.labels(table=TeamMember.__tablename__, operation="select").inc()
    return result.scalar_one_or_none()
