"""SQLAlchemy model for the audit trail of auth events."""

from sqlalchemy import TIMESTAMP, Column, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB

from amoria_admin.models.base import Base


class ActivityLog(Base):
    """
    ORM model for ``activity_logs``.

    ``details`` is free-form JSON; OTP rows carry ``username``, a masked
    ``email`` and an ISO ``timestamp``. The resend limiter counts rows by
    ``action`` and ``details->>'username'``.
    """

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True)
    action = Column(String, nullable=False, index=True)
    resource_type = Column(String, nullable=False)
    resource_id = Column(Integer, nullable=True)
    details = Column(JSONB, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
