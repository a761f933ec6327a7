"""
Error types and JSON error envelopes shared by the route handlers.

Every failure answers with the same envelope the admin UI expects:

    {"success": false, "message": "...", "error": "..."}

where ``error`` (the exception text) is only present when APP_ENV=development.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from amoria_admin import config
from amoria_admin.utils.datetime import utc_now

# Postgres SQLSTATE for "relation does not exist"
UNDEFINED_TABLE = "42P01"

MISSING_TABLES_MESSAGE = "Database tables not found. Please contact support."


class UpstreamError(Exception):
    """Raised when the marketplace backend fails or refuses a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(Exception):
    """Raised when Zoho WorkDrive rejects an upload, link or delete request."""


class EmailError(Exception):
    """Raised when a transactional email could not be handed to Brevo."""


def pg_error_code(exc: BaseException) -> Optional[str]:
    """
    Extract the Postgres SQLSTATE from an exception, if it carries one.

    SQLAlchemy wraps the DBAPI error, so look through ``.orig`` first.
    """
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_missing_table_error(exc: BaseException) -> bool:
    return pg_error_code(exc) == UNDEFINED_TABLE


def error_response(
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
    with_status: bool = False,
    **extra: Any,
) -> JSONResponse:
    """
    Build the standard failure envelope.

    Args:
        status_code: HTTP status code to answer with
        message: Human readable message for the admin UI
        exc: Exception to expose in development mode
        with_status: Also embed ``status`` and ``timestamp`` in the body
            (the support routes carry them)
        **extra: Additional fields merged into the body
    """
    content: dict[str, Any] = {"success": False, "message": message}
    if exc is not None and config.IS_DEVELOPMENT:
        content["error"] = str(exc)
    if with_status:
        content["status"] = status_code
        content["timestamp"] = utc_now().isoformat()
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
