"""
Admin console catalogue: bookings, payments, properties, tours, users and
support tickets served from the marketplace backend.

Upstream failures answer 502. No placeholder records are ever returned in
their place, so an empty table always means the backend had nothing.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from amoria_admin.dependencies import get_backend_client
from amoria_admin.errors import UpstreamError, error_response
from amoria_admin.network.client import BackendClient
from amoria_admin.routes._message_helpers import success_response
from amoria_admin.services.admin_catalog import (
    AdminCatalog,
    InvalidActionError,
    UnknownActionError,
    UnknownResourceError,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


def get_catalog(client: BackendClient = Depends(get_backend_client)) -> AdminCatalog:
    return AdminCatalog(client)


def upstream_error(resource: str, e: UpstreamError) -> JSONResponse:
    logger.error("admin_upstream_failed", resource=resource, status_code=e.status_code, error=str(e))
    return error_response(502, f"Failed to load {resource} from the marketplace backend", e)


@router.get("/{resource}")
def list_resource(
    resource: str,
    request: Request,
    catalog: AdminCatalog = Depends(get_catalog),
) -> JSONResponse:
    """
    One page of a resource with stats and pagination.

    Query parameters are passed through: ``search``, ``sort``, ``order``,
    ``limit``, ``offset`` and the resource's own filters.
    """
    try:
        page = catalog.list_records(resource, dict(request.query_params))
    except UnknownResourceError:
        return error_response(404, f"Unknown resource: {resource}")
    except UpstreamError as e:
        return upstream_error(resource, e)

    return success_response(data=page["data"], stats=page["stats"], pagination=page["pagination"])


@router.get("/{resource}/{item_id}")
def get_resource_item(
    resource: str,
    item_id: str,
    catalog: AdminCatalog = Depends(get_catalog),
) -> JSONResponse:
    try:
        record = catalog.get_record(resource, item_id)
    except UnknownResourceError:
        return error_response(404, f"Unknown resource: {resource}")
    except UpstreamError as e:
        if e.status_code == 404:
            return error_response(404, "Record not found")
        return upstream_error(resource, e)

    return success_response(data=record)


@router.post("/{resource}/{item_id}/{action}")
def run_action(
    resource: str,
    item_id: str,
    action: str,
    body: Optional[Dict[str, Any]] = Body(None),
    catalog: AdminCatalog = Depends(get_catalog),
) -> JSONResponse:
    """
    Apply a named action (approve, cancel, verify, ...) to one record.

    The change is only reported once the backend acknowledged it.
    """
    try:
        result = catalog.perform_action(resource, item_id, action, body)
    except (UnknownResourceError, UnknownActionError):
        return error_response(404, f"Unknown action {action} for {resource}")
    except InvalidActionError as e:
        return error_response(400, str(e))
    except UpstreamError as e:
        return upstream_error(resource, e)

    return success_response(f"{action} applied to {resource} {item_id}", result)
