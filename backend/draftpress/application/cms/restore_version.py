# draftpress/application/cms/restore_version.py
from typing import Optional

from draftpress.engine import get_engine
from draftpress.utils.transaction import transactional


def undo_entity(*, kind: str, entity_id: str, actor_id: Optional[str], session_id: Optional[str] = None):
    engine = get_engine()

    with transactional():
        version = engine.history.undo(kind, entity_id, session_id=session_id, actor_id=actor_id)

    return version


def redo_entity(*, kind: str, entity_id: str, actor_id: Optional[str], session_id: Optional[str] = None):
    engine = get_engine()

    with transactional():
        version = engine.history.redo(kind, entity_id, session_id=session_id, actor_id=actor_id)

    return version


def restore_version(
    *,
    kind: str,
    entity_id: str,
    version_id: str,
    actor_id: Optional[str],
    session_id: Optional[str] = None,
):
    """
    Bring a draft back to the state recorded by ``version_id``.

    Responsibilities:
    - chain verification before anything is applied
    - reconstruction from the cheapest side (snapshot or current state)
    - hash check against the recorded state
    - new ``restore`` entry; history is never rewritten
    """
    engine = get_engine()

    with transactional():
        version = engine.history.restore_to(
            kind, entity_id, version_id, session_id=session_id, actor_id=actor_id
        )

    return version


def list_versions(*, kind: str, entity_id: str, limit: int = 20, cursor: Optional[str] = None):
    engine = get_engine()
    engine.store(kind)  # unknown kinds raise NotFound
    return engine.history.list_versions(kind, entity_id, limit=limit, cursor=cursor)
