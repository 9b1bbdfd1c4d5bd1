# draftpress/stores/base.py
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app
from sqlalchemy import select

from draftpress.domain.exceptions import ConflictStaleWrite, ConstraintViolation, NotFound
from draftpress.domain.ownership import children_of
from draftpress.extensions import db
from draftpress.models.base import new_id, utc_now
from draftpress.utils.hashing import content_hash

EntityKey = Tuple[str, str]


@dataclass(frozen=True)
class ParentRef:
    kind: str
    column: str
    required: bool = True


class EntityStore:
    """
    Draft/published access for one entity kind.

    Subclasses declare the content ``fields`` (name -> default), their
    ``parents`` and the columns that must be unique among draft siblings.
    """

    kind: str = ""
    model: Any = None
    fields: Dict[str, Any] = {}
    parents: Tuple[ParentRef, ...] = ()
    order_by: Tuple[str, ...] = ()
    # Each entry: (*scope columns, unique column)
    unique_among_siblings: Tuple[Tuple[str, ...], ...] = ()
    storage_path_field: Optional[str] = None

    def __init__(self, engine):
        self.engine = engine

    # -------------------------------------------------
    # Row access
    # -------------------------------------------------
    def find(self, entity_id, is_published, *, include_deleted=False, for_update=False):
        stmt = select(self.model).where(
            self.model.id == entity_id,
            self.model.is_published == is_published,
        )
        if not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        if for_update:
            stmt = stmt.with_for_update()
        return db.session.execute(stmt).scalar_one_or_none()

    def get_draft(self, entity_id):
        row = self.find(entity_id, False)
        if row is None:
            raise NotFound(f"{self.kind} {entity_id} has no draft")
        return row

    def get_published(self, entity_id):
        row = self.find(entity_id, True)
        if row is None:
            raise NotFound(f"{self.kind} {entity_id} is not published")
        return row

    def list_children(self, parent_id, is_published, *, column=None, include_deleted=False):
        """Children of ``parent_id`` in the same publish state, in display order."""
        column = column or self.parents[0].column
        query = self.model.query.filter(
            getattr(self.model, column) == parent_id,
            self.model.is_published == is_published,
        )
        if not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query.order_by(*self.ordering()).all()

    def list_all(self, is_published, *, include_deleted=False):
        query = self.model.query.filter(self.model.is_published == is_published)
        if not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query.order_by(*self.ordering()).all()

    def ordering(self):
        columns = [getattr(self.model, name) for name in self.order_by]
        return columns + [self.model.created_at, self.model.id]

    # -------------------------------------------------
    # Content
    # -------------------------------------------------
    def state_of(self, row) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(row, name)) for name in self.fields}

    def current_state(self, entity_id):
        """Draft content, ``None`` when soft-deleted."""
        row = self.find(entity_id, False, include_deleted=True)
        if row is None:
            raise NotFound(f"{self.kind} {entity_id} has no draft")
        return None if row.is_deleted else self.state_of(row)

    def hash_state(self, state):
        return content_hash(self.kind, state)

    def parent_keys(self, row) -> List[EntityKey]:
        keys = []
        for ref in self.parents:
            parent_id = getattr(row, ref.column)
            if parent_id:
                keys.append((ref.kind, parent_id))
        return keys

    def references(self, row) -> List[EntityKey]:
        """Entities this row points at without owning them."""
        return []

    def storage_paths(self, row) -> List[str]:
        if row is None or not self.storage_path_field:
            return []
        path = getattr(row, self.storage_path_field)
        return [path] if path else []

    def is_publishable(self, row) -> bool:
        return True

    # -------------------------------------------------
    # Validation
    # -------------------------------------------------
    def validate(self, row):
        with db.session.no_autoflush:
            self._check_parents(row)
            self._check_siblings(row)
            self.check(row)

    def check(self, row):
        """Kind-specific invariants. Raise ConstraintViolation."""

    def _check_parents(self, row):
        for ref in self.parents:
            parent_id = getattr(row, ref.column)
            if not parent_id:
                if ref.required:
                    raise ConstraintViolation(f"{self.kind}.{ref.column} is required")
                continue
            parent = self.engine.store(ref.kind).find(parent_id, row.is_published)
            if parent is None:
                raise ConstraintViolation(
                    f"{self.kind} {row.id} references missing {ref.kind} {parent_id}"
                )

    def _check_siblings(self, row):
        for columns in self.unique_among_siblings:
            *scope, column = columns
            value = getattr(row, column)
            if value in (None, ""):
                continue

            query = self.model.query.filter(
                self.model.is_published.is_(False),
                self.model.deleted_at.is_(None),
                self.model.id != row.id,
                getattr(self.model, column) == value,
            )
            for name in scope:
                query = query.filter(getattr(self.model, name) == getattr(row, name))

            if query.first() is not None:
                raise ConstraintViolation(f"{self.kind} {column} '{value}' is already in use")

    # -------------------------------------------------
    # Draft writes
    # -------------------------------------------------
    def upsert_draft(
        self,
        entity_id,
        fields,
        *,
        expected_hash=None,
        session_id=None,
        actor_id=None,
        description=None,
    ):
        """
        Create or update the draft row. The published twin is never touched.

        ``expected_hash`` is the draft hash the caller last read; a mismatch
        means someone else wrote in between.
        """
        unknown = set(fields) - set(self.fields)
        if unknown:
            raise ConstraintViolation(f"Unknown {self.kind} fields: {sorted(unknown)}")

        row = None
        if entity_id:
            row = self.find(entity_id, False, include_deleted=True, for_update=True)
            if row is not None and row.is_deleted:
                raise NotFound(f"{self.kind} {entity_id} was deleted")

        if expected_hash is not None:
            current_hash = row.content_hash if row is not None else None
            if current_hash != expected_hash:
                raise ConflictStaleWrite(
                    f"{self.kind} {entity_id} changed since it was read",
                    current_hash=current_hash,
                )

        if row is None:
            before = None
            row = self.model(id=entity_id or new_id(), is_published=False)
            for name, default in self.fields.items():
                setattr(row, name, copy.deepcopy(default))
        else:
            before = self.state_of(row)

        for name, value in fields.items():
            setattr(row, name, copy.deepcopy(value))

        after = self.state_of(row)
        if before is not None and after == before:
            return row

        self.validate(row)
        row.content_hash = self.hash_state(after)
        row.updated_at = utc_now()
        db.session.add(row)
        db.session.flush()

        self.engine.history.record(
            self.kind,
            row.id,
            "create" if before is None else "update",
            before,
            after,
            session_id=session_id,
            actor_id=actor_id,
            description=description,
        )
        return row

    def soft_delete_draft(self, entity_id, *, session_id=None, actor_id=None, cascade_id=None):
        """
        Soft-delete the draft and, synchronously, the drafts it owns through
        synchronous ownership edges. Published rows stay until the next publish.

        Every delete entry of one cascade carries the same ``cascade`` id, so
        undo and redo can move the group together.
        """
        cascade_id = cascade_id or new_id()
        row = self.find(entity_id, False, for_update=True)
        if row is None:
            raise NotFound(f"{self.kind} {entity_id} has no draft")

        before = self.state_of(row)
        row.soft_delete()
        row.updated_at = utc_now()
        db.session.flush()

        self.engine.history.record(
            self.kind, row.id, "delete", before, None,
            session_id=session_id, actor_id=actor_id, meta={"cascade": cascade_id},
        )

        deleted = [(self, row)]
        for edge in children_of(self.kind, synchronous=True):
            child_store = self.engine.store(edge.child)
            for child in child_store.list_children(row.id, False, column=edge.column):
                deleted.extend(
                    child_store.soft_delete_draft(
                        child.id, session_id=session_id, actor_id=actor_id, cascade_id=cascade_id
                    )
                )

        current_app.logger.debug(f"Soft-deleted {self.kind} {entity_id} ({len(deleted)} rows)")
        return deleted

    def apply_state(self, entity_id, state):
        """
        Force the draft into ``state`` (``None`` = soft-deleted).

        Used by undo, redo, restore and revert; callers record the entry.
        """
        row = self.find(entity_id, False, include_deleted=True, for_update=True)
        if row is None:
            raise NotFound(f"{self.kind} {entity_id} has no draft")

        if state is None:
            if not row.is_deleted:
                row.soft_delete()
        else:
            unknown = set(state) - set(self.fields)
            if unknown:
                raise ConstraintViolation(f"Unknown {self.kind} fields: {sorted(unknown)}")
            row.restore()
            for name, default in self.fields.items():
                setattr(row, name, copy.deepcopy(state.get(name, default)))
            self.validate(row)
            row.content_hash = self.hash_state(self.state_of(row))

        row.updated_at = utc_now()
        db.session.flush()
        return row

    def purge_draft(self, entity_id):
        row = self.find(entity_id, False, include_deleted=True)
        if row is None:
            return None
        db.session.delete(row)
        db.session.flush()
        return row

    # -------------------------------------------------
    # Published writes (publish coordinator only)
    # -------------------------------------------------
    def write_published(self, draft):
        """Copy ``draft`` onto its published twin. Returns 'created' or 'updated'."""
        published = self.find(draft.id, True, include_deleted=True)
        action = "updated"
        if published is None:
            published = self.model(id=draft.id, is_published=True)
            db.session.add(published)
            action = "created"

        for name in self.fields:
            setattr(published, name, copy.deepcopy(getattr(draft, name)))
        published.content_hash = draft.content_hash
        published.deleted_at = None
        published.updated_at = utc_now()
        db.session.flush()
        return action

    def delete_published(self, entity_id):
        published = self.find(entity_id, True, include_deleted=True)
        if published is None:
            return False
        db.session.delete(published)
        db.session.flush()
        return True
