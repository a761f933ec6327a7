"""SQLAlchemy model for contact form submissions, also served as support tickets."""

from sqlalchemy import TIMESTAMP, Boolean, Column, Integer, String, Text, text

from amoria_admin.models.base import Base


class ContactMessage(Base):
    """
    ORM model for the ``contact_us`` table.

    A row has no stored status. It is derived from ``admin_reply`` and
    ``is_resolved``: replied when a reply exists, otherwise closed when
    resolved, otherwise new.
    """

    __tablename__ = "contact_us"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    admin_reply = Column(Text, nullable=True)
    is_resolved = Column(Boolean, nullable=False, server_default=text("FALSE"))
    replied_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
