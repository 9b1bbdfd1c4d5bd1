# draftpress/utils/pagination.py
from __future__ import annotations

from typing import Any, Optional, TypedDict

from sqlalchemy.orm import Query
from werkzeug.exceptions import BadRequest

MAX_LIMIT = 100


class CursorMeta(TypedDict):
    """
    Strongly-typed cursor pagination metadata.

    Explicit keys prevent contract drift across list_* endpoints.
    """
    has_more: bool
    next_cursor: Optional[str]


def encode_cursor(sequence: int) -> str:
    """Cursors are opaque to clients: ``seq:<n>``."""
    if sequence is None:
        raise ValueError("sequence is required to encode cursor")
    return f"seq:{sequence}"


def decode_cursor(cursor: str) -> int:
    """
    Decode a cursor into the sequence it points at.

    Raises:
    - BadRequest if cursor format is invalid
    """
    if not cursor or not cursor.startswith("seq:"):
        raise BadRequest("Invalid cursor format")

    try:
        return int(cursor[4:])
    except ValueError as exc:
        raise BadRequest("Invalid cursor format") from exc


def parse_limit(raw: Optional[str], default: int = 20) -> int:
    if raw is None:
        return default
    try:
        limit = int(raw)
    except ValueError as exc:
        raise BadRequest("Limit must be an integer") from exc
    if limit <= 0:
        raise BadRequest("Limit must be greater than zero")
    return min(limit, MAX_LIMIT)


def paginate_by_sequence(
    query: Query,
    *,
    column: Any,
    limit: int,
    cursor: Optional[str] = None,
) -> tuple[list[Any], CursorMeta]:
    """
    Execute a cursor-paginated query, newest (highest sequence) first.

    Strategy:
    - Fetch limit + 1 rows to detect continuation
    - Trim extra row from result set
    - Generate the next cursor from the last boundary row only
    """
    if limit <= 0:
        raise BadRequest("Limit must be greater than zero")

    if cursor:
        query = query.filter(column < decode_cursor(cursor))

    rows = query.order_by(column.desc()).limit(limit + 1).all()

    has_more = len(rows) > limit
    items = rows[:limit]

    next_cursor = None
    if items and has_more:
        next_cursor = encode_cursor(items[-1].sequence)

    return items, {
        "has_more": has_more,
        "next_cursor": next_cursor,
    }
