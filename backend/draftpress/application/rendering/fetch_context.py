# draftpress/application/rendering/fetch_context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

LAYER_PAGE_PREFIX = "p_"


def _page_number(raw: Any) -> int:
    """1-based page number; anything unusable falls back to the first page."""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


@dataclass(frozen=True)
class FetchContext:
    """Which state to read and which slice of a collection to return."""

    is_published: bool
    page: int = 1
    items_per_page: Optional[int] = None
    layer_pages: Dict[str, int] = field(default_factory=dict)
    locale: Optional[str] = None

    @property
    def offset(self) -> int:
        if not self.items_per_page:
            return 0
        return (self.page - 1) * self.items_per_page

    @property
    def limit(self) -> Optional[int]:
        return self.items_per_page or None

    def for_layer(self, layer_id: str, items_per_page: Optional[int] = None) -> "FetchContext":
        """Context of one collection layer: its own ``p_<layerId>`` page wins."""
        return FetchContext(
            is_published=self.is_published,
            page=self.layer_pages.get(layer_id, self.page),
            items_per_page=items_per_page if items_per_page is not None else self.items_per_page,
            layer_pages=self.layer_pages,
            locale=self.locale,
        )


def resolve_fetch_context(
    *,
    preview: bool,
    page: Any = None,
    items_per_page: Optional[int] = None,
    layer_pages: Optional[Mapping[str, Any]] = None,
    locale: Optional[str] = None,
) -> FetchContext:
    """
    Pure resolution of a read request.

    Preview reads drafts, everything else reads published rows.
    """
    if items_per_page is not None and items_per_page <= 0:
        items_per_page = None

    return FetchContext(
        is_published=not preview,
        page=_page_number(page) if page is not None else 1,
        items_per_page=items_per_page,
        layer_pages={
            str(layer_id): _page_number(value)
            for layer_id, value in (layer_pages or {}).items()
        },
        locale=locale or None,
    )


def fetch_context_from_request(request, *, preview_allowed: bool, items_per_page: Optional[int] = None) -> FetchContext:
    """Build a context from ``?page=``, ``?p_<layerId>=``, ``?locale=`` and ``?preview=``."""
    args = request.args
    preview = preview_allowed and args.get("preview", "").lower() in {"1", "true", "yes"}

    layer_pages = {
        key[len(LAYER_PAGE_PREFIX):]: value
        for key, value in args.items()
        if key.startswith(LAYER_PAGE_PREFIX) and len(key) > len(LAYER_PAGE_PREFIX)
    }

    raw_limit = args.get("per_page", "")
    if raw_limit.isdigit():
        items_per_page = int(raw_limit)

    return resolve_fetch_context(
        preview=preview,
        page=args.get("page"),
        items_per_page=items_per_page,
        layer_pages=layer_pages,
        locale=args.get("locale"),
    )
