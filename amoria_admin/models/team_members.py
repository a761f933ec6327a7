"""SQLAlchemy model for back-office staff accounts."""

from sqlalchemy import TIMESTAMP, Boolean, Column, Integer, String, text

from amoria_admin.models.base import Base


class TeamMember(Base):
    """
    ORM model for ``team_members``.

    Usernames are stored lower-cased. ``status`` is the active flag; inactive
    members cannot request OTP codes.
    """

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    status = Column(Boolean, nullable=False, server_default=text("TRUE"))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
