# draftpress/application/cms/revert_draft.py
from typing import Any, Dict, Optional

from draftpress.application.publishing.plan import OWNED
from draftpress.engine import get_engine
from draftpress.utils.transaction import transactional


def revert_to_published(
    *,
    kind: str,
    entity_id: str,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Discard unpublished draft changes of an entity and what it owns.

    Responsibilities:
    - copy published content back onto each owned draft
    - soft-delete owned drafts that were never published
    - one ``restore`` version entry per changed draft
    """
    engine = get_engine()
    nodes = engine.publisher.collect(kind, entity_id, follow_references=False)

    reverted, removed = [], []
    storage_paths = []

    with transactional():
        for node in nodes.values():
            if node.role != OWNED or node.draft is None:
                continue

            store = engine.store(node.kind)
            current = None if node.draft.is_deleted else store.state_of(node.draft)

            if node.published is None:
                if current is not None:
                    for owner, row in store.soft_delete_draft(
                        node.entity_id, session_id=session_id, actor_id=actor_id
                    ):
                        storage_paths.extend(owner.storage_paths(row))
                    removed.append(node.key)
                continue

            target = store.state_of(node.published)
            if current == target:
                continue

            storage_paths.extend(store.storage_paths(node.draft))
            store.apply_state(node.entity_id, target)
            engine.history.record(
                node.kind, node.entity_id, "restore", current, target,
                meta={"reverted_to_published": True},
                session_id=session_id, actor_id=actor_id,
                description="Revert to published",
            )
            reverted.append(node.key)

    if storage_paths:
        engine.gc.collect(storage_paths)

    return {
        "reverted": [f"{k}:{i}" for k, i in reverted],
        "removed": [f"{k}:{i}" for k, i in removed],
    }
