# draftpress/application/publishing/coordinator.py
from __future__ import annotations

import time
from typing import Dict, List, Optional

from flask import current_app

from draftpress.domain.exceptions import ConstraintViolation, NotFound, TransactionAborted
from draftpress.domain.lifecycle.publish import PublishState
from draftpress.domain.ownership import children_of
from draftpress.extensions import db
from draftpress.models import CollectionItemValue
from .plan import (
    ANCESTOR,
    DEPENDENCY,
    OWNED,
    REFERENCE,
    ROLE_RANK,
    EntityKey,
    PublishNode,
    PublishPlan,
    PublishResult,
    PublishRun,
)


class PublishDeadlineExceeded(TimeoutError):
    pass


class PublishCoordinator:
    """
    Copies a draft subtree onto its published twins in one transaction.

    Collecting -> Diffing -> Writing -> Committed, or RolledBack on any
    failure while writing. Rows whose hashes already match are not touched.
    """

    def __init__(self, engine, *, timeout_seconds: Optional[float] = None):
        self.engine = engine
        self.timeout_seconds = timeout_seconds

    # -------------------------------------------------
    # Collecting
    # -------------------------------------------------
    def collect(self, kind, entity_id, *, follow_references=True) -> Dict[EntityKey, PublishNode]:
        """
        Ordered nodes for a run: every node comes after the parents it needs,
        so upserts run in order and deletes run in reverse.
        """
        nodes: Dict[EntityKey, PublishNode] = {}
        self._visit(nodes, kind, entity_id, OWNED, follow_references)
        if (kind, entity_id) not in nodes:
            raise NotFound(f"{kind} {entity_id} does not exist")
        return nodes

    def _ensure(self, nodes, kind, entity_id, role) -> Optional[PublishNode]:
        key = (kind, entity_id)
        node = nodes.get(key)

        if node is None:
            store = self.engine.store(kind)
            draft = store.find(entity_id, False, include_deleted=True)
            published = store.find(entity_id, True)
            if draft is None and published is None:
                return None
            node = PublishNode(kind, entity_id, role, draft=draft, published=published)
            self._ensure_ancestors(nodes, node)
            nodes[key] = node
        elif ROLE_RANK[role] > ROLE_RANK[node.role]:
            node.role = role
            self._ensure_ancestors(nodes, node)

        return node

    def _ensure_ancestors(self, nodes, node):
        store = self.engine.store(node.kind)
        role = node.ancestor_role(store)
        for parent_kind, parent_id in node.parent_keys(store):
            self._ensure(nodes, parent_kind, parent_id, role)

    def _visit(self, nodes, kind, entity_id, role, follow_references):
        node = self._ensure(nodes, kind, entity_id, role)
        if node is None or node.expanded:
            return
        node.expanded = True

        child_role = OWNED if node.role == OWNED else REFERENCE
        for edge in children_of(kind):
            child_store = self.engine.store(edge.child)
            child_ids: List[str] = []
            for is_published in (False, True):
                for child in child_store.list_children(
                    entity_id, is_published, column=edge.column, include_deleted=not is_published
                ):
                    if child.id not in child_ids:
                        child_ids.append(child.id)
            for child_id in child_ids:
                self._visit(nodes, edge.child, child_id, child_role, follow_references)

        if follow_references and node.draft is not None and not node.draft.is_deleted:
            store = self.engine.store(kind)
            for ref_kind, ref_id in store.references(node.draft):
                self._visit(nodes, ref_kind, ref_id, REFERENCE, follow_references)

    # -------------------------------------------------
    # Diffing
    # -------------------------------------------------
    def diff(self, root: EntityKey, nodes: Dict[EntityKey, PublishNode]) -> PublishPlan:
        plan = PublishPlan(root=root, nodes=nodes)
        blocked = set()

        for node in nodes.values():
            if node.role == ANCESTOR:
                continue

            store = self.engine.store(node.kind)
            parents = set(node.parent_keys(store))

            if parents & plan.deleted_keys:
                if node.role == DEPENDENCY:
                    raise ConstraintViolation(
                        f"Cannot publish: {node.kind} {node.entity_id} lost its parent"
                    )
                self._mark_deleted(plan, node)
            elif parents & blocked:
                blocked.add(node.key)
            elif not node.is_live(store):
                if node.role == OWNED:
                    self._mark_deleted(plan, node)
                elif node.role == DEPENDENCY:
                    raise ConstraintViolation(
                        f"Cannot publish: required {node.kind} {node.entity_id} is deleted in draft"
                    )
                else:
                    blocked.add(node.key)
            elif node.published is None or node.published.content_hash != node.draft.content_hash:
                plan.to_upsert.append(node)
            else:
                plan.unchanged.append(node)

        self._release_dependent_assets(plan)
        return plan

    @staticmethod
    def _mark_deleted(plan, node):
        plan.deleted_keys.add(node.key)
        if node.published is not None:
            plan.to_delete.append(node)

    def _draft_gone(self, plan, node):
        """Deleted in draft, directly or through a deleted owner."""
        if node.draft is None or node.draft.is_deleted:
            return True
        store = self.engine.store(node.kind)
        return any(
            key in plan.nodes and self._draft_gone(plan, plan.nodes[key])
            for key in store.parent_keys(node.draft)
        )

    def _release_dependent_assets(self, plan):
        """
        Assets uploaded through a CMS field belong to the values using them:
        once no remaining value points at one, it goes with them.
        """
        value_store = self.engine.store("collection_item_value")
        asset_store = self.engine.store("asset")

        removed_values = {
            entity_id for kind, entity_id in plan.deleted_keys
            if kind == value_store.kind and self._draft_gone(plan, plan.nodes[(kind, entity_id)])
        }
        if not removed_values:
            return

        candidates = []
        for value_id in removed_values:
            node = plan.nodes[(value_store.kind, value_id)]
            for ref_kind, asset_id in value_store.references(node.draft or node.published):
                if ref_kind == asset_store.kind and asset_id not in candidates:
                    candidates.append(asset_id)

        for asset_id in candidates:
            draft = asset_store.find(asset_id, False, include_deleted=True)
            if draft is None or draft.source != "cms":
                continue

            still_used = (
                CollectionItemValue.query
                .filter(
                    CollectionItemValue.value == asset_id,
                    CollectionItemValue.deleted_at.is_(None),
                    CollectionItemValue.id.notin_(sorted(removed_values)),
                )
                .first()
            )
            if still_used is not None:
                continue

            key = (asset_store.kind, asset_id)
            node = plan.nodes.get(key)
            if node is None:
                node = PublishNode(
                    asset_store.kind, asset_id, OWNED,
                    draft=draft, published=asset_store.find(asset_id, True),
                )
                plan.nodes[key] = node
            plan.to_upsert = [n for n in plan.to_upsert if n.key != key]
            plan.unchanged = [n for n in plan.unchanged if n.key != key]
            if key not in plan.deleted_keys:
                self._mark_deleted(plan, node)
            if not draft.is_deleted:
                plan.released_assets.append(asset_id)

    # -------------------------------------------------
    # Writing
    # -------------------------------------------------
    def _deadline(self, timeout):
        timeout = self.timeout_seconds if timeout is None else timeout
        return time.monotonic() + timeout if timeout else None

    @staticmethod
    def _check_deadline(deadline):
        if deadline is not None and time.monotonic() > deadline:
            raise PublishDeadlineExceeded("Publish deadline exceeded")

    def _write(self, plan: PublishPlan, result: PublishResult, deadline, *, session_id=None, actor_id=None):
        storage_paths: List[str] = []

        for node in reversed(plan.to_delete):
            self._check_deadline(deadline)
            store = self.engine.store(node.kind)
            storage_paths.extend(store.storage_paths(node.published))
            store.delete_published(node.entity_id)
            result.deleted.append(node.key)

        for node in plan.to_upsert:
            self._check_deadline(deadline)
            store = self.engine.store(node.kind)
            action = store.write_published(node.draft)
            (result.created if action == "created" else result.updated).append(node.key)

        asset_store = self.engine.store("asset")
        for asset_id in plan.released_assets:
            self._check_deadline(deadline)
            for store, row in asset_store.soft_delete_draft(asset_id, session_id=session_id, actor_id=actor_id):
                storage_paths.extend(store.storage_paths(row))

        return storage_paths

    def _commit(self, run, result, plan, deadline, *, action, session_id, actor_id):
        run.advance(PublishState.WRITING)
        try:
            storage_paths = self._write(
                plan, result, deadline, session_id=session_id, actor_id=actor_id
            )

            root_kind, root_id = plan.root
            root = plan.nodes[plan.root]
            if root.draft is not None:
                version = self.engine.history.record_marker(
                    root_kind, root_id, action,
                    summary=result.summary(), session_id=session_id, actor_id=actor_id,
                )
                result.version_id = version.id

            db.session.commit()
        except Exception as exc:
            db.session.rollback()
            run.advance(PublishState.ROLLED_BACK)
            result.state = run.state
            current_app.logger.error(f"{action} of {run.kind} {run.entity_id} rolled back: {exc}")
            raise TransactionAborted(f"{action} of {run.kind} {run.entity_id} failed: {exc}") from exc

        run.advance(PublishState.COMMITTED)
        result.state = run.state
        current_app.logger.info(
            f"{action} {run.kind} {run.entity_id}: {len(result.created)} created, "
            f"{len(result.updated)} updated, {len(result.deleted)} deleted, {result.unchanged} unchanged"
        )
        self._after_commit(action, result, storage_paths)
        return result

    def _after_commit(self, action, result, storage_paths):
        if storage_paths:
            self.engine.gc.collect(storage_paths)
        if self.engine.settings is not None:
            self.engine.settings.invalidate()
        if self.engine.tasks is not None:
            self.engine.tasks.dispatch(action, result.to_dict())

    # -------------------------------------------------
    # Entry points
    # -------------------------------------------------
    def publish(self, kind, entity_id, *, timeout=None, session_id=None, actor_id=None) -> PublishResult:
        deadline = self._deadline(timeout)
        run = PublishRun("publish", kind, entity_id)

        nodes = self.collect(kind, entity_id)

        run.advance(PublishState.DIFFING)
        plan = self.diff((kind, entity_id), nodes)

        result = PublishResult(kind, entity_id, run.state, unchanged=len(plan.unchanged))
        if plan.is_empty:
            # Nothing differs: zero writes, no history entry.
            db.session.rollback()
            result.state = PublishState.COMMITTED
            current_app.logger.info(f"publish {kind} {entity_id}: nothing to publish")
            return result

        return self._commit(
            run, result, plan, deadline,
            action="publish", session_id=session_id, actor_id=actor_id,
        )

    def unpublish(self, kind, entity_id, *, timeout=None, session_id=None, actor_id=None) -> PublishResult:
        """Remove the published subtree. Drafts are left untouched."""
        deadline = self._deadline(timeout)
        run = PublishRun("unpublish", kind, entity_id)

        nodes = self.collect(kind, entity_id, follow_references=False)

        run.advance(PublishState.DIFFING)
        plan = PublishPlan(root=(kind, entity_id), nodes=nodes)
        for node in nodes.values():
            if node.role == OWNED and node.published is not None:
                plan.to_delete.append(node)
                plan.deleted_keys.add(node.key)

        result = PublishResult(kind, entity_id, run.state)
        if plan.is_empty:
            db.session.rollback()
            result.state = PublishState.COMMITTED
            return result

        return self._commit(
            run, result, plan, deadline,
            action="unpublish", session_id=session_id, actor_id=actor_id,
        )
