"""
SQLAlchemy engine singleton with connection pooling.

The admin API runs short request-scoped queries, so the pool stays small and
stale connections are detected with pre-ping before use.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from amoria_admin.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

engine: Engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=False,
)


def check_engine_health(db_engine: Engine = engine) -> bool:
    """
    Check if database engine is healthy and connections are working.

    Used by the /ready endpoint and by the support listing before it runs
    its queries.

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
