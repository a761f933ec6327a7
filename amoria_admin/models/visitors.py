"""SQLAlchemy model for public-site visitor tracking."""

from sqlalchemy import TIMESTAMP, Column, Integer, String, Text, text

from amoria_admin.models.base import Base


class VisitorVisit(Base):
    """ORM model for ``visitor_tracking``: one row per tracked page view."""

    __tablename__ = "visitor_tracking"

    id = Column(Integer, primary_key=True)
    ip_address = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    region = Column(String, nullable=True)
    timezone = Column(String, nullable=True)
    page_url = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
