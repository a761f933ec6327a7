"""
FastAPI dependency injection providers.

Dependencies can be overridden in tests using app.dependency_overrides, making
it easy to inject mock engines and vendor clients for isolated unit testing.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Generator

from sqlalchemy.engine import Engine

from amoria_admin.db.engine import engine
from amoria_admin.network.client import BackendClient
from amoria_admin.storage.zoho import ZohoWorkDriveClient


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> mock_engine = Mock(spec=Engine)
        >>> app.dependency_overrides[get_db_engine] = lambda: mock_engine
    """
    yield engine


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    """Shared marketplace backend client (one cached bearer credential per process)."""
    return BackendClient.from_config()


@lru_cache(maxsize=1)
def get_zoho_client() -> ZohoWorkDriveClient:
    """Shared Zoho WorkDrive client (one cached OAuth credential per process)."""
    return ZohoWorkDriveClient.from_config()
