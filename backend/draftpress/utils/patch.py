# draftpress/utils/patch.py
"""
Structural JSON patches (RFC 6902 subset: add / remove / replace).

Paths are JSON Pointers. The empty path addresses the whole document, so
creating an entity is ``add ""`` and deleting it is ``remove ""``.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List

Patch = List[Dict[str, Any]]


class PatchError(ValueError):
    pass


def _escape(token: Any) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _child(path: str, token: Any) -> str:
    return f"{path}/{_escape(token)}"


def create_patch(source: Any, target: Any) -> Patch:
    """Return the operations turning ``source`` into ``target``."""
    if source is None and target is None:
        return []
    if source is None:
        return [{"op": "add", "path": "", "value": copy.deepcopy(target)}]
    if target is None:
        return [{"op": "remove", "path": ""}]

    ops: Patch = []
    _diff(source, target, "", ops)
    return ops


def _diff(source: Any, target: Any, path: str, ops: Patch) -> None:
    # bool is an int subclass; 1 and True must not compare equal here
    if type(source) is not type(target):
        ops.append({"op": "replace", "path": path, "value": copy.deepcopy(target)})
        return

    if isinstance(source, dict):
        for key in source:
            if key not in target:
                ops.append({"op": "remove", "path": _child(path, key)})
        for key, value in target.items():
            if key not in source:
                ops.append({"op": "add", "path": _child(path, key), "value": copy.deepcopy(value)})
            else:
                _diff(source[key], value, _child(path, key), ops)
        return

    if isinstance(source, list):
        _diff_list(source, target, path, ops)
        return

    if source != target:
        ops.append({"op": "replace", "path": path, "value": copy.deepcopy(target)})


def _element_id(value: Any) -> Any:
    return value.get("id") if isinstance(value, dict) else None


def _diff_list(source: list, target: list, path: str, ops: Patch) -> None:
    common = min(len(source), len(target))

    # Layer trees: a node that moved is a different element, not an edit.
    for index in range(common):
        if _element_id(source[index]) != _element_id(target[index]):
            ops.append({"op": "replace", "path": path, "value": copy.deepcopy(target)})
            return

    for index in range(common):
        _diff(source[index], target[index], _child(path, index), ops)
    for index in range(common, len(target)):
        ops.append({"op": "add", "path": _child(path, index), "value": copy.deepcopy(target[index])})
    for index in reversed(range(common, len(source))):
        ops.append({"op": "remove", "path": _child(path, index)})


def _split(path: str) -> List[str]:
    if not path.startswith("/"):
        raise PatchError(f"Invalid JSON pointer: {path!r}")
    return [_unescape(token) for token in path[1:].split("/")]


def _list_index(container: list, token: str, *, allow_end: bool) -> int:
    if token == "-" and allow_end:
        return len(container)
    try:
        index = int(token)
    except ValueError as exc:
        raise PatchError(f"Invalid list index: {token!r}") from exc
    upper = len(container) if allow_end else len(container) - 1
    if index < 0 or index > upper:
        raise PatchError(f"List index out of range: {index}")
    return index


def _resolve_parent(document: Any, tokens: List[str]) -> Any:
    node = document
    for token in tokens[:-1]:
        if isinstance(node, dict):
            if token not in node:
                raise PatchError(f"Missing key on path: {token!r}")
            node = node[token]
        elif isinstance(node, list):
            node = node[_list_index(node, token, allow_end=False)]
        else:
            raise PatchError(f"Cannot descend into {type(node).__name__}")
    return node


def apply_patch(document: Any, patch: Patch) -> Any:
    """Apply ``patch`` to a copy of ``document`` and return the result."""
    result = copy.deepcopy(document)

    for operation in patch:
        op = operation.get("op")
        path = operation.get("path", "")

        if op not in ("add", "remove", "replace"):
            raise PatchError(f"Unsupported operation: {op!r}")

        if path == "":
            if op == "remove":
                if result is None:
                    raise PatchError("Cannot remove an absent document")
                result = None
            else:
                if op == "replace" and result is None:
                    raise PatchError("Cannot replace an absent document")
                result = copy.deepcopy(operation["value"])
            continue

        if result is None:
            raise PatchError(f"Cannot apply {op} {path!r} to an absent document")

        tokens = _split(path)
        parent = _resolve_parent(result, tokens)
        token = tokens[-1]

        if isinstance(parent, dict):
            if op != "add" and token not in parent:
                raise PatchError(f"Missing key: {token!r}")
            if op == "remove":
                del parent[token]
            else:
                parent[token] = copy.deepcopy(operation["value"])
        elif isinstance(parent, list):
            if op == "add":
                parent.insert(_list_index(parent, token, allow_end=True), copy.deepcopy(operation["value"]))
            elif op == "replace":
                parent[_list_index(parent, token, allow_end=False)] = copy.deepcopy(operation["value"])
            else:
                parent.pop(_list_index(parent, token, allow_end=False))
        else:
            raise PatchError(f"Cannot apply {op} inside {type(parent).__name__}")

    return result
