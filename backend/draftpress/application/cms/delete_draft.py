# draftpress/application/cms/delete_draft.py
from typing import List, Optional, Tuple

from draftpress.engine import get_engine
from draftpress.utils.transaction import transactional


def delete_draft(
    *,
    kind: str,
    entity_id: str,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
) -> List[Tuple[str, str]]:
    """
    Soft-delete a draft and the drafts it owns synchronously.

    The published twin keeps serving visitors until the next publish.
    Blobs stay in place so the delete can be undone; the purge releases them.
    """
    store = get_engine().store(kind)

    with transactional():
        deleted = store.soft_delete_draft(entity_id, session_id=session_id, actor_id=actor_id)

    return [(owner.kind, row.id) for owner, row in deleted]
