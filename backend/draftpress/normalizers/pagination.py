# draftpress/normalizers/pagination.py
from typing import Any, Callable, Dict, List, Optional

from draftpress.utils.pagination import CursorMeta


def _page_meta(page: int, per_page: int, total: Optional[int]) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"page": page, "per_page": per_page}
    if total is None:
        return meta

    total_pages = (total + per_page - 1) // per_page
    meta.update(total=total, total_pages=total_pages, has_more=page < total_pages)
    return meta


def normalize_pagination(
    items: List[Any],
    normalize_fn: Callable[[Any], Dict[str, Any]],
    *,
    cursor: Optional[CursorMeta] = None,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    total: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Version history pages by sequence cursor, collection items by page
    number. Pass one or the other, never both.
    """
    if cursor is not None and page is not None:
        raise ValueError("cursor and page pagination are mutually exclusive")

    response: Dict[str, Any] = {"items": [normalize_fn(item) for item in items]}

    if cursor is not None:
        response["pagination"] = dict(cursor)
    elif page is not None and per_page is not None:
        response["pagination"] = _page_meta(page, per_page, total)

    return response
