"""
Admin catalogue over the marketplace backend.

Bookings, payments, properties, tours, users and tickets are owned by the
marketplace backend. The admin console lists them with search, filters,
sorting, pagination and summary counters, and mutates them through status
actions. Each resource is declared once as a ResourceDefinition; the same
generic code filters, sorts, pages and summarises every resource.

Backend failures are never masked: listing raises UpstreamError instead of
substituting placeholder records, and an action is only reported as done when
the backend acknowledged it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import quote
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

import structlog

from amoria_admin.db.query import build_pagination, clamp_pagination
from amoria_admin.errors import UpstreamError
from amoria_admin.metrics import upstream_failures
from amoria_admin.network.client import BackendClient
from amoria_admin.utils.datetime import parse_timestamp

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


class UnknownResourceError(LookupError):
    pass


class UnknownActionError(LookupError):
    pass


class InvalidActionError(ValueError):
    """The action request is missing fields it needs or carries values it may not."""


@dataclass(frozen=True)
class Action:
    """
    A mutation exposed on one record.

    ``path`` is formatted with the record id and with any ``path_fields``
    taken from the request body (bookings need their type in the URL). Every
    value is percent-encoded as a single path segment. ``allowed_values``
    restricts what a body field may hold. Keys in ``payload`` are fixed and
    cannot be overridden by the body.
    """

    method: str
    path: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    path_fields: Tuple[str, ...] = ()
    required_fields: Tuple[str, ...] = ()
    allowed_values: Mapping[str, FrozenSet[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ResourceDefinition:
    name: str
    path: str
    search_fields: Tuple[str, ...]
    filters: Tuple[str, ...] = ()
    bool_filters: Tuple[str, ...] = ()
    min_filters: Mapping[str, str] = field(default_factory=dict)
    sortable: Tuple[str, ...] = ("createdAt",)
    default_sort: str = "createdAt"
    exclude: Optional[Callable[[Record], bool]] = None
    stats: Optional[Callable[[List[Record]], Dict[str, Any]]] = None
    actions: Mapping[str, Action] = field(default_factory=dict)
    item_path: Optional[str] = None

    def detail_path(self, item_id: str) -> str:
        return (self.item_path or self.path + "/{id}").format(id=path_segment(item_id))


# =============================================================================
# Field helpers
# =============================================================================


def path_segment(value: Any) -> str:
    return quote(str(value), safe="")


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _count(records: List[Record], predicate: Callable[[Record], bool]) -> int:
    return sum(1 for record in records if predicate(record))


def _field_equals(name: str, *values: str) -> Callable[[Record], bool]:
    wanted = {v.lower() for v in values}
    return lambda record: str(record.get(name, "")).lower() in wanted


def parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


# =============================================================================
# Stats builders
# =============================================================================


def booking_stats(bookings: List[Record]) -> Dict[str, Any]:
    total = len(bookings)
    cancelled = _count(bookings, _field_equals("status", "cancelled"))
    revenue = sum(
        _number(b.get("totalPrice")) for b in bookings if _field_equals("status", "completed")(b)
    )
    return {
        "totalBookings": total,
        "totalRevenue": revenue,
        "pendingBookings": _count(bookings, _field_equals("status", "pending")),
        "confirmedBookings": _count(bookings, _field_equals("status", "confirmed")),
        "cancelledBookings": cancelled,
        "completedBookings": _count(bookings, _field_equals("status", "completed")),
        "pendingRevenue": sum(
            _number(b.get("totalPrice"))
            for b in bookings
            if _field_equals("paymentStatus", "pending")(b)
        ),
        "refundedAmount": sum(
            _number(b.get("refundAmount"))
            for b in bookings
            if _field_equals("paymentStatus", "refunded")(b)
        ),
        "propertyBookings": _count(bookings, _field_equals("type", "property")),
        "tourBookings": _count(bookings, _field_equals("type", "tour")),
        "averageBookingValue": revenue / total if total else 0,
        "cancellationRate": cancelled / total * 100 if total else 0,
    }


def payment_stats(payments: List[Record]) -> Dict[str, Any]:
    successful = [p for p in payments if _field_equals("status", "completed", "accepted")(p)]
    revenue = sum(_number(p.get("amount")) for p in successful)
    return {
        "totalTransactions": len(payments),
        "successfulTransactions": len(successful),
        "failedTransactions": _count(payments, _field_equals("status", "failed", "rejected")),
        "pendingTransactions": _count(payments, _field_equals("status", "pending", "processing")),
        "totalRevenue": revenue,
        "averageTransactionValue": revenue / max(len(successful), 1),
    }


def property_stats(properties: List[Record]) -> Dict[str, Any]:
    return {
        "total": len(properties),
        "active": _count(properties, _field_equals("status", "active")),
        "pending": _count(properties, _field_equals("status", "pending")),
        "verified": _count(properties, lambda p: bool(p.get("isVerified"))),
        "totalBookings": int(sum(_number(p.get("totalBookings")) for p in properties)),
    }


def tour_stats(tours: List[Record]) -> Dict[str, Any]:
    total = len(tours)
    return {
        "totalTours": total,
        "activeTours": _count(tours, lambda t: bool(t.get("isActive"))),
        "verifiedTours": _count(tours, lambda t: bool(t.get("isVerified"))),
        "totalRevenue": sum(_number(t.get("totalRevenue")) for t in tours),
        "totalBookings": int(sum(_number(t.get("totalBookings")) for t in tours)),
        "averageRating": sum(_number(t.get("rating")) for t in tours) / total if total else 0,
        "highRatedTours": _count(tours, lambda t: _number(t.get("rating")) >= 4.5),
        "pendingApproval": _count(
            tours, lambda t: not t.get("isActive") and not t.get("isVerified")
        ),
    }


def user_stats(users: List[Record]) -> Dict[str, Any]:
    return {
        "totalUsers": len(users),
        "activeUsers": _count(users, _field_equals("status", "active")),
        "verifiedUsers": _count(users, _field_equals("verificationStatus", "verified")),
        "kycApproved": _count(users, _field_equals("kycStatus", "approved")),
    }


def ticket_stats(tickets: List[Record]) -> Dict[str, Any]:
    return {
        "total": len(tickets),
        "open": _count(tickets, _field_equals("status", "open")),
        "pending": _count(tickets, _field_equals("status", "pending")),
        "highPriority": _count(tickets, _field_equals("priority", "high", "critical")),
    }


# =============================================================================
# Resource registry
# =============================================================================

BOOKING_TYPES = frozenset({"property", "tour"})

RESOURCES: Dict[str, ResourceDefinition] = {
    "bookings": ResourceDefinition(
        name="bookings",
        path="/admin/bookings",
        search_fields=("id", "guestName", "guestEmail", "resourceName"),
        filters=("type", "status", "paymentStatus"),
        sortable=("createdAt", "updatedAt", "totalPrice", "guestName", "status"),
        stats=booking_stats,
        actions={
            "confirm": Action(
                "PUT",
                "/admin/bookings/{id}/{type}",
                {"status": "confirmed"},
                ("type",),
                allowed_values={"type": BOOKING_TYPES},
            ),
            "complete": Action(
                "PUT",
                "/admin/bookings/{id}/{type}",
                {"status": "completed"},
                ("type",),
                allowed_values={"type": BOOKING_TYPES},
            ),
            "cancel": Action(
                "POST",
                "/admin/bookings/{id}/{type}/cancel",
                {"reason": "Admin cancellation"},
                ("type",),
                allowed_values={"type": BOOKING_TYPES},
            ),
        },
    ),
    "payments": ResourceDefinition(
        name="payments",
        path="/admin/payments",
        search_fields=("id", "reference", "userName", "userEmail"),
        filters=("status", "type", "method"),
        sortable=("createdAt", "amount", "status"),
        stats=payment_stats,
    ),
    "properties": ResourceDefinition(
        name="properties",
        path="/admin/properties",
        search_fields=("name", "location", "hostName"),
        filters=("status", "hostId"),
        bool_filters=("isVerified",),
        sortable=("createdAt", "name", "pricePerNight", "rating", "totalBookings"),
        stats=property_stats,
        actions={
            "approve": Action("POST", "/admin/properties/{id}/approve"),
            "reject": Action("POST", "/admin/properties/{id}/reject", {"reason": "Admin action"}),
            "suspend": Action("POST", "/admin/properties/{id}/suspend", {"reason": "Admin action"}),
            "activate": Action("PUT", "/admin/properties/{id}", {"status": "active"}),
            "verify": Action("PUT", "/admin/properties/{id}", {"isVerified": True}),
            "unverify": Action("PUT", "/admin/properties/{id}", {"isVerified": False}),
            "delete": Action("DELETE", "/admin/properties/{id}"),
        },
    ),
    "tours": ResourceDefinition(
        name="tours",
        path="/admin/tours",
        search_fields=("title", "location", "tourGuideName"),
        filters=("category", "type", "difficulty", "tourGuideId"),
        bool_filters=("isActive", "isVerified"),
        min_filters={"minRating": "rating"},
        sortable=("createdAt", "title", "price", "rating", "totalBookings", "totalRevenue"),
        stats=tour_stats,
        actions={
            "activate": Action("PATCH", "/admin/tours/{id}", {"isActive": True}),
            "deactivate": Action("PATCH", "/admin/tours/{id}", {"isActive": False}),
            "verify": Action("PATCH", "/admin/tours/{id}", {"isVerified": True}),
            "unverify": Action("PATCH", "/admin/tours/{id}", {"isVerified": False}),
            "set_price": Action("PATCH", "/admin/tours/{id}", required_fields=("price",)),
            "delete": Action("DELETE", "/admin/tours/{id}"),
        },
    ),
    "users": ResourceDefinition(
        name="users",
        path="/admin/users",
        search_fields=("name", "firstName", "lastName", "email", "phone"),
        filters=("userType", "tourGuideType", "status", "verificationStatus", "kycStatus"),
        sortable=("createdAt", "name", "email", "lastLogin"),
        exclude=_field_equals("userType", "admin"),
        stats=user_stats,
        actions={
            "suspend": Action("POST", "/admin/users/{id}/suspend"),
            "activate": Action("POST", "/admin/users/{id}/activate"),
            "approve_kyc": Action(
                "PUT", "/admin/users/{id}", {"kycStatus": "approved", "verificationStatus": "verified"}
            ),
            "reject_kyc": Action("PUT", "/admin/users/{id}", {"kycStatus": "rejected"}),
            "verify": Action(
                "PUT", "/admin/users/{id}", {"verificationStatus": "verified", "isVerified": True}
            ),
            "reset_password": Action("POST", "/admin/users/{id}/reset-password"),
        },
    ),
    "tickets": ResourceDefinition(
        name="tickets",
        path="/admin/tickets",
        search_fields=("id", "subject", "userName", "userEmail"),
        filters=("status", "priority", "department"),
        sortable=("createdAt", "updatedAt", "priority", "status"),
        stats=ticket_stats,
        actions={
            "set_status": Action("PATCH", "/admin/tickets/{id}/status", required_fields=("status",)),
            "reply": Action("POST", "/admin/tickets/{id}/reply", required_fields=("message",)),
            "delete": Action("DELETE", "/admin/tickets/{id}"),
        },
    ),
}


def get_resource(name: str) -> ResourceDefinition:
    try:
        return RESOURCES[name]
    except KeyError:
        raise UnknownResourceError(name) from None


# =============================================================================
# Filtering, sorting and paging
# =============================================================================


def matches_search(record: Record, fields: Tuple[str, ...], term: str) -> bool:
    needle = term.lower()
    return any(needle in str(record.get(name) or "").lower() for name in fields)


def filter_records(
    records: List[Record],
    resource: ResourceDefinition,
    params: Mapping[str, str],
) -> List[Record]:
    """
    Apply the resource's filters to a list of records.

    ``all`` (or an empty value) disables a filter. Equality filters compare
    case-insensitively; boolean filters accept true/false; minimum filters
    keep records whose numeric field is at least the given value.
    """
    filtered = [r for r in records if not (resource.exclude and resource.exclude(r))]

    for name in resource.filters:
        value = params.get(name)
        if value and value != "all":
            filtered = [r for r in filtered if _field_equals(name, value)(r)]

    for name in resource.bool_filters:
        raw = params.get(name)
        wanted = parse_bool(raw) if raw else None
        if wanted is not None:
            filtered = [r for r in filtered if bool(r.get(name)) is wanted]

    for param, record_field in resource.min_filters.items():
        raw = params.get(param)
        if raw:
            try:
                minimum = float(raw)
            except ValueError:
                continue
            filtered = [r for r in filtered if _number(r.get(record_field)) >= minimum]

    search = (params.get("search") or "").strip()
    if search:
        filtered = [r for r in filtered if matches_search(r, resource.search_fields, search)]

    return filtered


def _sort_key(value: Any) -> Tuple[int, Any]:
    if isinstance(value, bool):
        return (0, float(value))
    if isinstance(value, (int, float)):
        return (0, float(value))
    parsed = parse_timestamp(value) if isinstance(value, str) else None
    if parsed is not None:
        return (1, parsed.timestamp())
    return (2, str(value).lower())


def sort_records(
    records: List[Record],
    sort_field: str,
    descending: bool,
) -> List[Record]:
    """Sort by one field; records without the field always come last."""
    present = [r for r in records if r.get(sort_field) is not None]
    missing = [r for r in records if r.get(sort_field) is None]
    present.sort(key=lambda r: _sort_key(r[sort_field]), reverse=descending)
    return present + missing


class AdminCatalog:
    """
    Lists and mutates marketplace records for the admin console.

    Example:
        >>> catalog = AdminCatalog(BackendClient.from_config())
        >>> page = catalog.list_records("bookings", {"status": "pending", "limit": "20"})
        >>> page["pagination"]["total"]
    """

    def __init__(self, client: BackendClient):
        self.client = client

    def fetch_all(self, resource: ResourceDefinition) -> List[Record]:
        try:
            return self.client.get_list(resource.path)
        except UpstreamError:
            upstream_failures.labels(resource=resource.name, operation="list").inc()
            raise

    def list_records(self, name: str, params: Mapping[str, str]) -> Dict[str, Any]:
        """
        Return one page of a resource plus stats and pagination.

        Stats are computed over every record the backend returned (before
        filters), matching the counters shown above the table.

        Raises:
            UnknownResourceError: Unknown resource name
            UpstreamError: The backend could not be read
        """
        resource = get_resource(name)
        records = self.fetch_all(resource)

        visible = [r for r in records if not (resource.exclude and resource.exclude(r))]
        filtered = filter_records(records, resource, params)

        sort_field = params.get("sort") or resource.default_sort
        if sort_field not in resource.sortable:
            sort_field = resource.default_sort
        descending = (params.get("order") or "desc").lower() != "asc"
        ordered = sort_records(filtered, sort_field, descending)

        limit, offset = clamp_pagination(params.get("limit"), params.get("offset"))
        page = ordered[offset : offset + limit]

        logger.debug(
            "admin_records_listed",
            resource=name,
            fetched=len(records),
            matched=len(filtered),
            returned=len(page),
        )

        return {
            "data": page,
            "stats": resource.stats(visible) if resource.stats else {},
            "pagination": build_pagination(len(filtered), limit, offset),
        }

    def get_record(self, name: str, item_id: str) -> Record:
        resource = get_resource(name)
        try:
            return self.client.get_item(resource.detail_path(item_id))
        except UpstreamError:
            upstream_failures.labels(resource=name, operation="get").inc()
            raise

    def perform_action(
        self,
        name: str,
        item_id: str,
        action_name: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Run a named action against one record.

        Returns:
            The backend's acknowledged payload

        Raises:
            UnknownResourceError / UnknownActionError: Nothing registered under that name
            InvalidActionError: Required body fields are missing or hold disallowed values
            UpstreamError: The backend failed or did not acknowledge the change
        """
        resource = get_resource(name)
        action = resource.actions.get(action_name)
        if action is None:
            raise UnknownActionError(action_name)

        body = dict(body or {})
        missing = [f for f in action.path_fields + action.required_fields if body.get(f) in (None, "")]
        if missing:
            raise InvalidActionError(f"Missing required fields: {', '.join(missing)}")

        for field_name, allowed in action.allowed_values.items():
            value = body.get(field_name)
            if field_name in body and (not isinstance(value, str) or value not in allowed):
                raise InvalidActionError(f"Invalid {field_name}: {value!r}")

        segments = {f: path_segment(body.pop(f)) for f in action.path_fields}
        path = action.path.format(id=path_segment(item_id), **segments)
        payload = {**body, **action.payload} or None
        if action.method == "DELETE":
            payload = None

        try:
            result = self.client.send_action(action.method, path, json=payload)
        except UpstreamError:
            upstream_failures.labels(resource=name, operation=action_name).inc()
            logger.error("admin_action_failed", resource=name, item_id=item_id, action=action_name)
            raise

        logger.info("admin_action_applied", resource=name, item_id=item_id, action=action_name)
        return result
