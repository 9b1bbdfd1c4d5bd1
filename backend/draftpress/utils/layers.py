# draftpress/utils/layers.py
from typing import Any, Dict, Iterable, Iterator, List, Tuple

# Layer node key -> entity kind it points at.
LAYER_REFERENCE_KEYS: Dict[str, str] = {
    "component_id": "component",
    "style_id": "layer_style",
    "asset_id": "asset",
    "collection_id": "collection",
}


def iter_layers(layers: Iterable[Any]) -> Iterator[Dict[str, Any]]:
    """Depth-first walk over a layer tree (a list of root nodes)."""
    stack: List[Any] = list(reversed(list(layers or [])))
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        yield node
        children = node.get("children") or []
        stack.extend(reversed(children))


def layer_references(layers: Iterable[Any]) -> List[Tuple[str, str]]:
    """Entity keys referenced anywhere in the tree, first occurrence order."""
    seen = set()
    references = []
    for node in iter_layers(layers):
        for key, kind in LAYER_REFERENCE_KEYS.items():
            value = node.get(key)
            if value and (kind, value) not in seen:
                seen.add((kind, value))
                references.append((kind, value))
    return references


def duplicate_layer_ids(layers: Iterable[Any]) -> List[str]:
    seen = set()
    duplicates = []
    for node in iter_layers(layers):
        layer_id = node.get("id")
        if layer_id in seen:
            duplicates.append(layer_id)
        seen.add(layer_id)
    return duplicates
