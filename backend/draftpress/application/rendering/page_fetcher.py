# draftpress/application/rendering/page_fetcher.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from draftpress.domain.exceptions import NotFound
from draftpress.models import (
    Collection,
    CollectionField,
    CollectionItem,
    CollectionItemValue,
    Locale,
    Page,
    PageFolder,
    PageLayers,
    Translation,
)
from .fetch_context import FetchContext


def _live(model, ctx: FetchContext):
    return model.query.filter(
        model.is_published.is_(ctx.is_published),
        model.deleted_at.is_(None),
    )


def _split_path(path: str) -> List[str]:
    return [segment for segment in (path or "").strip("/").split("/") if segment]


def _resolve_folder(segments: List[str], ctx: FetchContext) -> Optional[str]:
    """Walk folder slugs from the root; returns the folder id (None = root)."""
    folder_id = None
    for segment in segments:
        folder = _live(PageFolder, ctx).filter(
            PageFolder.page_folder_id == folder_id,
            PageFolder.slug == segment,
        ).first()
        if folder is None:
            raise NotFound(f"No folder '{segment}'")
        folder_id = folder.id
    return folder_id


def _find_dynamic_match(folder_id, slug, ctx) -> Optional[Tuple[Page, CollectionItem]]:
    dynamic_pages = _live(Page, ctx).filter(
        Page.page_folder_id == folder_id,
        Page.is_dynamic.is_(True),
    ).all()

    for page in dynamic_pages:
        cms = (page.settings or {}).get("cms") or {}
        slug_field_id = cms.get("slug_field_id")
        if not slug_field_id:
            continue
        value = _live(CollectionItemValue, ctx).filter(
            CollectionItemValue.field_id == slug_field_id,
            CollectionItemValue.value == slug,
        ).first()
        if value is None:
            continue
        item = _live(CollectionItem, ctx).filter(CollectionItem.id == value.item_id).first()
        if item is not None and (not ctx.is_published or item.is_publishable):
            return page, item
    return None


def resolve_page(path: str, ctx: FetchContext) -> Tuple[Page, Optional[CollectionItem]]:
    segments = _split_path(path)

    if not segments:
        page = _live(Page, ctx).filter(Page.page_folder_id.is_(None), Page.is_index.is_(True)).first()
        if page is None:
            raise NotFound("No home page")
        return page, None

    folder_id = _resolve_folder(segments[:-1], ctx)
    slug = segments[-1]

    page = _live(Page, ctx).filter(
        Page.page_folder_id == folder_id,
        Page.slug == slug,
        Page.is_dynamic.is_(False),
    ).first()
    if page is not None:
        return page, None

    # A folder path serves the folder's index page.
    folder = _live(PageFolder, ctx).filter(
        PageFolder.page_folder_id == folder_id,
        PageFolder.slug == slug,
    ).first()
    if folder is not None:
        index = _live(Page, ctx).filter(Page.page_folder_id == folder.id, Page.is_index.is_(True)).first()
        if index is not None:
            return index, None

    match = _find_dynamic_match(folder_id, slug, ctx)
    if match is not None:
        return match

    raise NotFound(f"No page at '/{'/'.join(segments)}'")


def item_values(item_ids: List[str], ctx: FetchContext) -> Dict[str, Dict[str, Any]]:
    """{item_id: {field key: value}} in one pass."""
    if not item_ids:
        return {}

    rows = (
        _live(CollectionItemValue, ctx)
        .join(
            CollectionField,
            (CollectionField.id == CollectionItemValue.field_id)
            & (CollectionField.is_published == CollectionItemValue.is_published),
        )
        .filter(
            CollectionItemValue.item_id.in_(item_ids),
            CollectionField.deleted_at.is_(None),
        )
        .with_entities(CollectionItemValue.item_id, CollectionField.key, CollectionItemValue.value)
        .all()
    )

    values: Dict[str, Dict[str, Any]] = {item_id: {} for item_id in item_ids}
    for item_id, key, value in rows:
        values[item_id][key] = value
    return values


def fetch_collection_items(collection_id: str, ctx: FetchContext) -> Dict[str, Any]:
    collection = _live(Collection, ctx).filter(Collection.id == collection_id).first()
    if collection is None:
        raise NotFound(f"Collection {collection_id} not found")

    query = _live(CollectionItem, ctx).filter(CollectionItem.collection_id == collection_id)
    if ctx.is_published:
        query = query.filter(CollectionItem.is_publishable.is_(True))

    total = query.count()
    query = query.order_by(CollectionItem.manual_order, CollectionItem.created_at, CollectionItem.id)
    if ctx.limit:
        query = query.offset(ctx.offset).limit(ctx.limit)
    items = query.all()

    values = item_values([item.id for item in items], ctx)
    return {
        "collection": {"id": collection.id, "name": collection.name, "identifier": collection.identifier},
        "items": [{"id": item.id, "values": values.get(item.id, {})} for item in items],
        "page": ctx.page,
        "per_page": ctx.items_per_page,
        "total": total,
    }


def fetch_translations(source_type: str, source_id: str, ctx: FetchContext) -> Dict[str, Any]:
    if not ctx.locale:
        return {}

    locale = _live(Locale, ctx).filter(Locale.code == ctx.locale).first()
    if locale is None:
        return {}

    rows = _live(Translation, ctx).filter(
        Translation.locale_id == locale.id,
        Translation.source_type == source_type,
        Translation.source_id == source_id,
    ).all()
    return {
        row.content_key: row.content_value
        for row in rows
        if row.is_completed or not ctx.is_published
    }


def fetch_page_by_path(path: str, ctx: FetchContext, *, settings=None) -> Dict[str, Any]:
    """Everything needed to render one page in the requested state."""
    page, item = resolve_page(path, ctx)

    layers = _live(PageLayers, ctx).filter(PageLayers.page_id == page.id).first()
    css_key = "published_css" if ctx.is_published else "draft_css"

    result: Dict[str, Any] = {
        "page": {
            "id": page.id,
            "name": page.name,
            "slug": page.slug,
            "is_dynamic": page.is_dynamic,
            "settings": page.settings or {},
        },
        "layers": layers.layers if layers is not None else [],
        "generated_css": layers.generated_css if layers is not None else None,
        "site_css": settings.get(css_key) if settings is not None else None,
        "translations": fetch_translations("page", page.id, ctx),
        "is_published": ctx.is_published,
    }

    if item is not None:
        result["item"] = {"id": item.id, "values": item_values([item.id], ctx).get(item.id, {})}

    return result
