# draftpress/normalizers/version.py
from typing import Any, Dict

from draftpress.models.version import Version


def normalize_version(version: Version, include_patches=False) -> Dict[str, Any]:
    if not version:
        raise ValueError("Version cannot be None")

    data = {
        "id": version.id,
        "entity_type": version.entity_type,
        "entity_id": version.entity_id,
        "sequence": version.sequence,
        "action": version.action,
        "description": version.description,
        "metadata": version.meta or {},
        "previous_hash": version.previous_hash,
        "current_hash": version.current_hash,
        "has_snapshot": version.has_snapshot,
        "session_id": version.session_id,
        "actor_id": version.actor_id,
        "created_at": version.created_at.isoformat() if version.created_at else None,
    }

    if include_patches:
        data["redo"] = version.redo
        data["undo"] = version.undo

    return data
