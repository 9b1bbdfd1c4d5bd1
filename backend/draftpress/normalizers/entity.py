# draftpress/normalizers/entity.py
from typing import Any, Dict


def _iso(value):
    return value.isoformat() if value is not None else None


def normalize_entity(store, row, admin=False) -> Dict[str, Any]:
    """
    Serialize any publishable row: identity, content fields, hash.

    ``admin`` adds lifecycle timestamps for editor views.
    """
    data: Dict[str, Any] = {
        "id": row.id,
        "kind": store.kind,
        "is_published": row.is_published,
        "content_hash": row.content_hash,
        **store.state_of(row),
    }

    if admin:
        data["created_at"] = _iso(row.created_at)
        data["updated_at"] = _iso(row.updated_at)
        data["deleted_at"] = _iso(row.deleted_at)

    return data
