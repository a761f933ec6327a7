"""
Filtered list queries built from one clause list.

List endpoints answer with a page of rows plus the total number of rows that
match the same filters. Both statements are derived from a single ListQuery,
so a filter added for the page is always applied to the count as well, and
SQLAlchemy binds every parameter itself.

Example:
    >>> q = ListQuery(ContactMessage.__table__, columns)
    >>> q.where(ContactMessage.is_resolved.is_(True))
    >>> rows = conn.execute(q.page_statement(ContactMessage.created_at.desc(), 100, 0))
    >>> total = conn.execute(q.count_statement()).scalar_one()
"""

from __future__ import annotations

from math import ceil
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.sql import ColumnElement, FromClause, Select

from amoria_admin.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


class ListQuery:
    """Accumulates WHERE clauses over a selectable and emits page and count statements."""

    def __init__(self, source: FromClause, columns: Optional[Sequence[Any]] = None):
        self.source = source
        self.columns = list(columns) if columns is not None else [source]
        self.clauses: list[ColumnElement[bool]] = []

    def where(self, *clauses: ColumnElement[bool]) -> "ListQuery":
        self.clauses.extend(clauses)
        return self

    def _filtered(self, stmt: Select) -> Select:
        return stmt.where(*self.clauses) if self.clauses else stmt

    def page_statement(
        self,
        order_by: Optional[ColumnElement[Any]],
        limit: int,
        offset: int,
    ) -> Select:
        stmt = self._filtered(select(*self.columns).select_from(self.source))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return stmt.limit(limit).offset(offset)

    def count_statement(self) -> Select:
        return self._filtered(select(func.count()).select_from(self.source))


def _to_int(value: Any, fallback: int) -> int:
    if value is None or value == "":
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def clamp_pagination(
    limit: Any,
    offset: Any,
    default: int = DEFAULT_PAGE_LIMIT,
    cap: int = MAX_PAGE_LIMIT,
) -> tuple[int, int]:
    """
    Normalise raw ``limit``/``offset`` query values.

    Non-numeric values fall back to the default limit and a zero offset.
    ``limit`` is clamped to ``[0, cap]`` and ``offset`` floored at 0.

    Example:
        >>> clamp_pagination("99999", "-5")
        (500, 0)
    """
    clamped_limit = max(0, min(_to_int(limit, default), cap))
    clamped_offset = max(_to_int(offset, 0), 0)
    return clamped_limit, clamped_offset


def build_pagination(total: int, limit: int, offset: int) -> dict[str, int]:
    """Pagination block returned next to every list payload."""
    if limit <= 0:
        return {"total": total, "limit": limit, "offset": offset, "pages": 0, "currentPage": 1}
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "pages": ceil(total / limit),
        "currentPage": offset // limit + 1,
    }
