# draftpress/application/publishing/plan.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from draftpress.domain.lifecycle.publish import PublishState, assert_publish_transition

EntityKey = Tuple[str, str]

# Why a node is part of a publish run, weakest first.
ANCESTOR = "ancestor"      # ordering only, never written
REFERENCE = "reference"    # pointed at by the subtree: upserted when live
DEPENDENCY = "dependency"  # required parent of a live node: must be live
OWNED = "owned"            # the root and everything it owns

ROLE_RANK = {ANCESTOR: 0, REFERENCE: 1, DEPENDENCY: 2, OWNED: 3}


@dataclass
class PublishNode:
    kind: str
    entity_id: str
    role: str
    draft: Any = None
    published: Any = None
    expanded: bool = False

    @property
    def key(self) -> EntityKey:
        return (self.kind, self.entity_id)

    def is_live(self, store) -> bool:
        return (
            self.draft is not None
            and not self.draft.is_deleted
            and store.is_publishable(self.draft)
        )

    def parent_keys(self, store) -> List[EntityKey]:
        keys: List[EntityKey] = []
        for row in (self.draft, self.published):
            if row is None:
                continue
            for key in store.parent_keys(row):
                if key not in keys:
                    keys.append(key)
        return keys

    def ancestor_role(self, store) -> str:
        if not self.is_live(store):
            return ANCESTOR
        if self.role in (OWNED, DEPENDENCY):
            return DEPENDENCY
        return REFERENCE


@dataclass
class PublishPlan:
    root: EntityKey
    nodes: Dict[EntityKey, PublishNode]
    to_upsert: List[PublishNode] = field(default_factory=list)
    to_delete: List[PublishNode] = field(default_factory=list)
    unchanged: List[PublishNode] = field(default_factory=list)
    deleted_keys: set = field(default_factory=set)
    released_assets: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_upsert and not self.to_delete and not self.released_assets


@dataclass
class PublishResult:
    kind: str
    entity_id: str
    state: PublishState
    created: List[EntityKey] = field(default_factory=list)
    updated: List[EntityKey] = field(default_factory=list)
    deleted: List[EntityKey] = field(default_factory=list)
    unchanged: int = 0
    version_id: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)

    def summary(self) -> Dict[str, Any]:
        return {
            "created": [f"{kind}:{entity_id}" for kind, entity_id in self.created],
            "updated": [f"{kind}:{entity_id}" for kind, entity_id in self.updated],
            "deleted": [f"{kind}:{entity_id}" for kind, entity_id in self.deleted],
            "unchanged": self.unchanged,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "id": self.entity_id,
            "state": self.state.value,
            "version_id": self.version_id,
            **self.summary(),
        }


class PublishRun:
    """Tracks one publish/unpublish run through its state machine."""

    def __init__(self, action: str, kind: str, entity_id: str):
        self.action = action
        self.kind = kind
        self.entity_id = entity_id
        self.state = PublishState.COLLECTING

    def advance(self, to_state: PublishState) -> None:
        assert_publish_transition(from_state=self.state, to_state=to_state)
        current_app.logger.debug(
            f"{self.action} {self.kind} {self.entity_id}: {self.state.value} -> {to_state.value}"
        )
        self.state = to_state
