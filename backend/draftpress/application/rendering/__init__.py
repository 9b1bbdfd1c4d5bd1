from .fetch_context import FetchContext, fetch_context_from_request, resolve_fetch_context
from .page_fetcher import fetch_collection_items, fetch_page_by_path, fetch_translations, resolve_page

__all__ = [
    "FetchContext",
    "fetch_collection_items",
    "fetch_context_from_request",
    "fetch_page_by_path",
    "fetch_translations",
    "resolve_fetch_context",
    "resolve_page",
]
