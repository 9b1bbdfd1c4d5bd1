# draftpress/application/cms/publish_entity.py
from typing import Any, Dict, List, Optional

from flask import current_app

from draftpress.application.settings_cache import set_setting
from draftpress.domain.ownership import owner_columns
from draftpress.engine import get_engine
from draftpress.models.base import utc_now
from draftpress.utils.transaction import transactional

# Kinds that can head a publish run on their own, in publish order.
SITE_ROOT_KINDS = (
    "layer_style",
    "component",
    "font",
    "asset_folder",
    "asset",
    "locale",
    "collection",
    "page_folder",
    "page",
)


def publish_entity(
    *,
    kind: str,
    entity_id: str,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Publish an entity and everything it owns or needs.

    Responsibilities:
    - single transaction for the whole subtree (coordinator)
    - skip rows whose hashes already match
    - asset GC, cache invalidation and webhooks after commit
    """
    result = get_engine().publisher.publish(
        kind, entity_id, timeout=timeout, session_id=session_id, actor_id=actor_id
    )
    return result.to_dict()


def unpublish_entity(
    *,
    kind: str,
    entity_id: str,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    result = get_engine().publisher.unpublish(
        kind, entity_id, timeout=timeout, session_id=session_id, actor_id=actor_id
    )
    return result.to_dict()


def _root_ids(store) -> List[str]:
    ids = []
    for is_published in (False, True):
        for row in store.list_all(is_published, include_deleted=not is_published):
            # Nested folders, pages and assets publish with their owner.
            if any(getattr(row, column, None) for column in owner_columns(store.kind)):
                continue
            if row.id not in ids:
                ids.append(row.id)
    return ids


def publish_site(
    *,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Publish every root entity with pending changes, one transaction each,
    then promote the draft stylesheet.
    """
    engine = get_engine()
    results = []

    # 1️⃣ One publish run per root
    for kind in SITE_ROOT_KINDS:
        store = engine.store(kind)
        for entity_id in _root_ids(store):
            draft = store.find(entity_id, False, include_deleted=True)
            if draft is None:
                result = engine.publisher.unpublish(kind, entity_id, session_id=session_id, actor_id=actor_id)
            else:
                result = engine.publisher.publish(kind, entity_id, session_id=session_id, actor_id=actor_id)
            if result.changed:
                results.append(result.to_dict())

    # 2️⃣ Promote stylesheet and stamp the publish
    published_at = utc_now().isoformat()
    with transactional():
        draft_css = engine.settings.get("draft_css")
        if draft_css is not None:
            set_setting("published_css", draft_css)
        set_setting("published_at", published_at)
    engine.settings.invalidate()

    current_app.logger.info(f"Site published: {len(results)} roots changed")
    return {"published_at": published_at, "results": results}
