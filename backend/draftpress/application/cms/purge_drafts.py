# draftpress/application/cms/purge_drafts.py
from datetime import timedelta
from typing import Dict, List, Tuple

from flask import current_app

from draftpress.domain.ownership import children_of
from draftpress.engine import get_engine
from draftpress.models.base import utc_now
from draftpress.utils.transaction import transactional


def _owned_drafts(engine, kind, entity_id) -> List[Tuple[str, str]]:
    """Every draft owned by (kind, entity_id), deepest first, itself last."""
    ordered: List[Tuple[str, str]] = []
    seen = set()

    def walk(current_kind, current_id):
        if (current_kind, current_id) in seen:
            return
        seen.add((current_kind, current_id))
        for edge in children_of(current_kind):
            child_store = engine.store(edge.child)
            for child in child_store.list_children(
                current_id, False, column=edge.column, include_deleted=True
            ):
                walk(edge.child, child.id)
        ordered.append((current_kind, current_id))

    walk(kind, entity_id)
    return ordered


def purge_deleted_drafts(*, retention_days: int) -> Dict[str, int]:
    """
    Hard-delete soft-deleted drafts older than the retention window.

    A draft is purged only when neither it nor anything it owns still has a
    published twin; the next publish must remove those first.
    """
    engine = get_engine()
    cutoff = utc_now() - timedelta(days=retention_days)
    purged, skipped = 0, 0
    storage_paths: List[str] = []

    for kind, store in engine.stores.items():
        expired_ids = [
            row.id for row in store.model.query
            .filter(
                store.model.is_published.is_(False),
                store.model.deleted_at.isnot(None),
                store.model.deleted_at < cutoff,
            )
            .all()
        ]

        for entity_id in expired_ids:
            # Already removed together with a purged parent.
            if store.find(entity_id, False, include_deleted=True) is None:
                continue

            owned = _owned_drafts(engine, kind, entity_id)
            if any(engine.store(k).find(i, True) is not None for k, i in owned):
                skipped += 1
                continue

            with transactional():
                for owned_kind, owned_id in owned:
                    owned_store = engine.store(owned_kind)
                    draft = owned_store.find(owned_id, False, include_deleted=True)
                    if draft is None:
                        continue
                    storage_paths.extend(owned_store.storage_paths(draft))
                    owned_store.purge_draft(owned_id)
                    purged += 1

    if storage_paths:
        engine.gc.collect(storage_paths)

    current_app.logger.info(f"Purged {purged} drafts, {skipped} still published")
    return {"purged": purged, "skipped": skipped}
