# draftpress/utils/hashing.py
from __future__ import annotations

import hashlib
import json
import unicodedata
from datetime import date, datetime
from typing import Any, Mapping, Optional

# Never part of an entity's content: identity, publish state and timestamps.
VOLATILE_FIELDS = frozenset({
    "id",
    "is_published",
    "content_hash",
    "created_at",
    "updated_at",
    "deleted_at",
})


def normalize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    if isinstance(value, str):
        return unicodedata.normalize("NFC", value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def normalize_fields(fields: Optional[Mapping[str, Any]]) -> Any:
    """
    Strip volatile fields and normalize the remaining content.

    ``None`` stands for "no state" (never created or deleted) and is kept as is.
    """
    if fields is None:
        return None
    return {
        key: normalize_value(value)
        for key, value in fields.items()
        if key not in VOLATILE_FIELDS
    }


def canonical_json(value: Any) -> str:
    """Deterministic JSON: sorted keys at every depth, no insignificant whitespace."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def content_hash(entity_kind: str, fields: Optional[Mapping[str, Any]]) -> str:
    """
    SHA-256 digest of an entity's semantic content.

    Draft and published rows with identical content hash identically, which
    is what lets the publish coordinator skip unchanged rows.
    """
    payload = canonical_json({
        "kind": entity_kind,
        "content": normalize_fields(fields),
    })
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
