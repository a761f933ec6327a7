from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    The admin API does not own the schema; these declarations mirror the
    existing tables so queries can be built with SQLAlchemy Core instead of
    concatenated SQL strings.
    """

    pass
