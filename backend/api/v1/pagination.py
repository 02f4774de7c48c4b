"""Offset pagination helpers shared by list endpoints."""

from collections.abc import Sequence
from typing import Any, TypeVar

from fastapi import Response
from sqlalchemy import Select

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20

RowT = TypeVar("RowT")


def apply_page(query: Select[Any], *, offset: int, limit: int) -> Select[Any]:
    """Fetch one row past ``limit`` so callers can tell whether more remain."""
    if offset > 0:
        query = query.offset(offset)
    return query.limit(limit + 1)


def trim_page(
    response: Response,
    rows: Sequence[RowT],
    *,
    offset: int,
    limit: int,
) -> list[RowT]:
    has_more = len(rows) > limit
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)
    return list(rows[:limit])


def set_next_offset_header(
    response: Response,
    *,
    offset: int,
    limit: int,
    has_more: bool,
) -> None:
    if has_more:
        response.headers["X-Next-Offset"] = str(offset + limit)
