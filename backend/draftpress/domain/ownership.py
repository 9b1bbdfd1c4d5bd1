# draftpress/domain/ownership.py
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class OwnershipEdge:
    """
    ``parent`` owns ``child`` rows through ``child.<column>``.

    Synchronous edges cascade soft deletes immediately. Asynchronous edges
    are resolved by the next publish (and the purge sweep).
    """
    parent: str
    child: str
    column: str
    synchronous: bool


OWNERSHIP_EDGES: Tuple[OwnershipEdge, ...] = (
    OwnershipEdge("page_folder", "page_folder", "page_folder_id", synchronous=True),
    OwnershipEdge("page_folder", "page", "page_folder_id", synchronous=True),
    OwnershipEdge("page", "page_layers", "page_id", synchronous=True),
    OwnershipEdge("locale", "translation", "locale_id", synchronous=True),
    OwnershipEdge("asset_folder", "asset_folder", "asset_folder_id", synchronous=True),
    OwnershipEdge("asset_folder", "asset", "asset_folder_id", synchronous=True),
    OwnershipEdge("collection", "collection_field", "collection_id", synchronous=False),
    OwnershipEdge("collection", "collection_item", "collection_id", synchronous=False),
    OwnershipEdge("collection_item", "collection_item_value", "item_id", synchronous=False),
    OwnershipEdge("collection_field", "collection_item_value", "field_id", synchronous=False),
)


def children_of(kind: str, *, synchronous: Optional[bool] = None) -> Tuple[OwnershipEdge, ...]:
    return tuple(
        edge for edge in OWNERSHIP_EDGES
        if edge.parent == kind and (synchronous is None or edge.synchronous == synchronous)
    )


def owner_columns(kind: str) -> Tuple[str, ...]:
    """Columns through which a row of ``kind`` is owned by another row."""
    return tuple(edge.column for edge in OWNERSHIP_EDGES if edge.child == kind)
