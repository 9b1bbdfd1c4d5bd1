# draftpress/application/cms/save_draft.py
from typing import Any, Dict, Optional

from draftpress.engine import get_engine
from draftpress.utils.transaction import transactional


def save_draft(
    *,
    kind: str,
    entity_id: Optional[str],
    data: Dict[str, Any],
    actor_id: Optional[str],
    expected_hash: Optional[str] = None,
    session_id: Optional[str] = None,
    description: Optional[str] = None,
):
    """
    Create or update a draft.

    Responsibilities:
    - transactional boundary
    - optimistic concurrency via the expected content hash
    - version log entry (inside the same transaction)
    """
    store = get_engine().store(kind)

    with transactional():
        row = store.upsert_draft(
            entity_id,
            data,
            expected_hash=expected_hash,
            session_id=session_id,
            actor_id=actor_id,
            description=description,
        )

    return row
