"""
Internal helpers shared by the contact-message and support-ticket routes.

Both routes serve the same ``contact_us`` table; they differ only in wording,
in whether the id is searchable and in whether a failed reply email fails the
request.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from amoria_admin.utils.datetime import utc_now


def row_to_json(row: dict[str, Any]) -> dict[str, Any]:
    """Make a RETURNING row JSON-safe (datetimes become ISO strings)."""
    return jsonable_encoder(row)


def success_response(
    message: Optional[str] = None,
    data: Any = None,
    with_status: bool = False,
    **extra: Any,
) -> JSONResponse:
    """
    Build the standard success envelope.

    Args:
        message: Optional human readable message
        data: Payload placed under ``data``
        with_status: Also embed ``status: 200`` and a ``timestamp``
        **extra: Additional top-level fields (pagination, stats, ...)
    """
    content: dict[str, Any] = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    content.update(extra)
    if with_status:
        content["status"] = 200
        content["timestamp"] = utc_now().isoformat()
    return JSONResponse(content=jsonable_encoder(content))
