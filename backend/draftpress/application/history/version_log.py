# draftpress/application/history/version_log.py
from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Optional, Tuple

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from draftpress.domain.exceptions import (
    ConflictStaleWrite,
    HistoryIntegrityError,
    NotFound,
    NothingToRestore,
)
from draftpress.domain.ownership import children_of
from draftpress.extensions import db
from draftpress.models.version import Version, VersionHead
from draftpress.utils.hashing import content_hash
from draftpress.utils.pagination import paginate_by_sequence
from draftpress.utils.patch import PatchError, apply_patch, create_patch

EDIT_ACTIONS = {"create", "update", "delete", "restore"}
MARKER_ACTIONS = {"publish", "unpublish"}


class VersionLog:
    """
    Append-only, hash-chained draft history per entity.

    Every entry links to its predecessor through ``previous_hash`` and
    carries the forward/inverse patches between the two states. A full
    snapshot is stored every ``snapshot_interval`` entries, and the
    ``VersionHead`` side index remembers where the latest one is, so
    verification and replay never need more than the entries since then.
    """

    def __init__(self, engine, *, snapshot_interval: int = 10):
        if snapshot_interval <= 0:
            raise ValueError("snapshot_interval must be positive")
        self.engine = engine
        self.snapshot_interval = snapshot_interval

    # -------------------------------------------------
    # Appending
    # -------------------------------------------------
    def _lock_head(self, entity_type, entity_id) -> VersionHead:
        head = db.session.execute(
            select(VersionHead)
            .where(VersionHead.entity_type == entity_type, VersionHead.entity_id == entity_id)
            .with_for_update()
        ).scalar_one_or_none()

        if head is None:
            head = VersionHead(entity_type=entity_type, entity_id=entity_id, head_sequence=0)
            db.session.add(head)
        return head

    def _snapshot_due(self, sequence) -> bool:
        return sequence % self.snapshot_interval == 0

    def _append(self, head, version):
        db.session.add(version)
        head.head_sequence = version.sequence
        head.head_hash = version.current_hash
        if version.snapshot is not None:
            head.snapshot_sequence = version.sequence
        if (version.meta or {}).get("reconciled"):
            head.checkpoint_sequence = version.sequence

        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictStaleWrite(
                f"Concurrent history write on {version.entity_type} {version.entity_id}"
            ) from exc
        return version

    def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
        *,
        session_id=None,
        actor_id=None,
        description=None,
        meta=None,
    ) -> Version:
        """Append one edit entry describing ``before -> after``."""
        if action not in EDIT_ACTIONS:
            raise ValueError(f"Unknown version action: {action}")

        head = self._lock_head(entity_type, entity_id)
        previous_hash = content_hash(entity_type, before)

        if head.head_hash is not None and head.head_hash != previous_hash:
            # The chain stays truthful; verify_chain reports the gap.
            current_app.logger.warning(
                f"Draft of {entity_type} {entity_id} diverged from its version head"
            )

        sequence = head.head_sequence + 1
        snapshot = None
        if self._snapshot_due(sequence):
            snapshot = {"state": copy.deepcopy(after)}

        version = Version(
            entity_type=entity_type,
            entity_id=entity_id,
            sequence=sequence,
            action=action,
            description=description,
            redo=create_patch(before, after),
            undo=None if action == "create" else create_patch(after, before),
            snapshot=snapshot,
            meta=meta,
            previous_hash=previous_hash,
            current_hash=content_hash(entity_type, after),
            session_id=session_id,
            actor_id=actor_id,
        )
        return self._append(head, version)

    def record_marker(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        *,
        summary=None,
        session_id=None,
        actor_id=None,
    ) -> Version:
        """Publish/unpublish entries: no content change, chain unchanged."""
        if action not in MARKER_ACTIONS:
            raise ValueError(f"Unknown marker action: {action}")

        head = self._lock_head(entity_type, entity_id)
        sequence = head.head_sequence + 1
        head_hash = head.head_hash
        snapshot = None

        if head_hash is None or self._snapshot_due(sequence):
            state = self._current_state(entity_type, entity_id)
            if head_hash is None:
                head_hash = content_hash(entity_type, state)
            if self._snapshot_due(sequence):
                snapshot = {"state": copy.deepcopy(state)}

        version = Version(
            entity_type=entity_type,
            entity_id=entity_id,
            sequence=sequence,
            action=action,
            redo=[],
            undo=[],
            snapshot=snapshot,
            meta=summary,
            previous_hash=head_hash,
            current_hash=head_hash,
            session_id=session_id,
            actor_id=actor_id,
        )
        return self._append(head, version)

    def reconcile(self, entity_type, entity_id, *, actor_id=None) -> Version:
        """
        Checkpoint the current draft after a manual repair.

        Verification and replay start at the latest checkpoint, so a chain
        broken earlier becomes usable again.
        """
        head = self._lock_head(entity_type, entity_id)
        state = self._current_state(entity_type, entity_id)
        sequence = head.head_sequence + 1

        version = Version(
            entity_type=entity_type,
            entity_id=entity_id,
            sequence=sequence,
            action="restore",
            description="History reconciled",
            redo=create_patch(None, state),
            undo=None,
            snapshot={"state": copy.deepcopy(state)},
            meta={"reconciled": True},
            previous_hash=head.head_hash,
            current_hash=content_hash(entity_type, state),
            actor_id=actor_id,
        )
        current_app.logger.info(f"Reconciled history of {entity_type} {entity_id} at {sequence}")
        return self._append(head, version)

    # -------------------------------------------------
    # Reading
    # -------------------------------------------------
    def _query(self, entity_type, entity_id):
        return Version.query.filter_by(entity_type=entity_type, entity_id=entity_id)

    def entries(self, entity_type, entity_id, *, since=None, until=None) -> List[Version]:
        query = self._query(entity_type, entity_id)
        if since is not None:
            query = query.filter(Version.sequence >= since)
        if until is not None:
            query = query.filter(Version.sequence <= until)
        return query.order_by(Version.sequence.asc()).all()

    def newest_first(self, entity_type, entity_id) -> Iterator[Version]:
        """
        Walk back from the head in chunks, stopping at the latest
        reconciliation checkpoint (which is yielded).
        """
        chunk_size = self.snapshot_interval * 2
        upper = None
        while True:
            query = self._query(entity_type, entity_id)
            if upper is not None:
                query = query.filter(Version.sequence < upper)
            chunk = query.order_by(Version.sequence.desc()).limit(chunk_size).all()
            if not chunk:
                return
            for entry in chunk:
                yield entry
                if (entry.meta or {}).get("reconciled"):
                    return
            upper = chunk[-1].sequence

    def list_versions(self, entity_type, entity_id, *, limit=20, cursor=None):
        query = self._query(entity_type, entity_id)
        return paginate_by_sequence(query, column=Version.sequence, limit=limit, cursor=cursor)

    def head(self, entity_type, entity_id) -> Optional[VersionHead]:
        return db.session.get(VersionHead, (entity_type, entity_id))

    def _current_state(self, entity_type, entity_id):
        return self.engine.store(entity_type).current_state(entity_id)

    def verify_chain(self, entity_type, entity_id, *, full=False) -> List[Version]:
        """
        Check the links from the latest snapshot to the head, and that the
        draft matches the chain head. ``full`` walks back to the latest
        reconciliation checkpoint instead. Raises HistoryIntegrityError.
        """
        head = self.head(entity_type, entity_id)
        if head is None or not head.head_sequence:
            raise NotFound(f"{entity_type} {entity_id} has no history")

        start = head.checkpoint_sequence if full else head.snapshot_sequence
        start = start or 1
        entries = self.entries(entity_type, entity_id, since=start)

        if not entries or entries[0].sequence != start:
            raise HistoryIntegrityError(
                f"History of {entity_type} {entity_id} is missing sequence {start}"
            )

        first = entries[0]
        if start == 1:
            expected = content_hash(entity_type, None)
        else:
            if content_hash(entity_type, first.snapshot_state) != first.current_hash:
                raise HistoryIntegrityError(
                    f"Snapshot at sequence {start} of {entity_type} {entity_id} does not match its hash"
                )
            expected = first.current_hash

        for offset, entry in enumerate(entries):
            if entry.sequence != start + offset:
                raise HistoryIntegrityError(
                    f"Missing history entry before sequence {entry.sequence} of {entity_type} {entity_id}"
                )
            if offset == 0 and start > 1:
                continue
            if entry.previous_hash != expected:
                raise HistoryIntegrityError(
                    f"Broken history chain at sequence {entry.sequence} of {entity_type} {entity_id}"
                )
            expected = entry.current_hash

        if entries[-1].sequence != head.head_sequence or head.head_hash != expected:
            raise HistoryIntegrityError(f"Version head of {entity_type} {entity_id} is out of sync")

        current = self._current_state(entity_type, entity_id)
        if content_hash(entity_type, current) != expected:
            raise HistoryIntegrityError(
                f"Draft of {entity_type} {entity_id} was modified outside the version log"
            )
        return entries

    def stack_tops(self, entity_type, entity_id) -> Tuple[Optional[Version], Optional[Version]]:
        """
        (next entry to undo, next entry to redo), read backwards from the head.

        An edit is applied unless the newest undo/redo entry about it is an
        undo. A new edit clears the redo stack, so only undos newer than the
        latest edit can be redone, the oldest of them first.
        """
        fate: Dict[str, str] = {}
        redoable: List[str] = []
        redo_open = True
        undo_top = None

        for entry in self.newest_first(entity_type, entity_id):
            meta = entry.meta or {}
            if entry.action in MARKER_ACTIONS or meta.get("reconciled"):
                continue
            if "undo_of" in meta:
                if meta["undo_of"] not in fate:
                    fate[meta["undo_of"]] = "undone"
                    if redo_open:
                        redoable.append(meta["undo_of"])
            elif "redo_of" in meta:
                fate.setdefault(meta["redo_of"], "applied")
            else:
                redo_open = False
                if fate.get(entry.id, "applied") == "applied":
                    undo_top = entry
                    break

        redo_top = None
        if redoable:
            redo_top = (
                self._query(entity_type, entity_id)
                .filter(Version.id.in_(redoable))
                .order_by(Version.sequence.asc())
                .first()
            )
        return undo_top, redo_top

    # -------------------------------------------------
    # Undo / redo / restore
    # -------------------------------------------------
    @staticmethod
    def _apply(state, patch, entry):
        try:
            return apply_patch(state, patch)
        except PatchError as exc:
            raise HistoryIntegrityError(
                f"Patch of version {entry.id} (sequence {entry.sequence}) does not apply: {exc}"
            ) from exc

    def _move_to(self, entity_type, entity_id, current, state, expected_hash, *, meta, **context):
        if content_hash(entity_type, state) != expected_hash:
            raise HistoryIntegrityError(
                f"Reconstructed state of {entity_type} {entity_id} does not match its recorded hash"
            )
        self.engine.store(entity_type).apply_state(entity_id, state)
        return self.record(entity_type, entity_id, "restore", current, state, meta=meta, **context)

    def _cascade_members(self, entity_type, entity_id, cascade_id, *, redo) -> List[Tuple[str, str]]:
        """
        Drafts deleted in the same cascade as ``entity_id`` whose own next
        undo (or redo) is still that delete. Parents come before children.
        """
        members: List[Tuple[str, str]] = []
        for edge in children_of(entity_type, synchronous=True):
            child_store = self.engine.store(edge.child)
            for child in child_store.list_children(entity_id, False, column=edge.column, include_deleted=True):
                undo_top, redo_top = self.stack_tops(edge.child, child.id)
                top = redo_top if redo else undo_top
                if top is None or top.action != "delete" or (top.meta or {}).get("cascade") != cascade_id:
                    continue
                members.append((edge.child, child.id))
                members.extend(self._cascade_members(edge.child, child.id, cascade_id, redo=redo))
        return members

    def _undo_one(self, entity_type, entity_id, context) -> Tuple[Version, Version]:
        self.verify_chain(entity_type, entity_id)
        target, _ = self.stack_tops(entity_type, entity_id)

        if target is None or target.undo is None:
            raise NothingToRestore(f"Nothing to undo for {entity_type} {entity_id}")

        current = self._current_state(entity_type, entity_id)
        state = self._apply(current, target.undo, target)
        version = self._move_to(
            entity_type, entity_id, current, state, target.previous_hash,
            meta={"undo_of": target.id},
            description=f"Undo {target.action} #{target.sequence}",
            **context,
        )
        return version, target

    def _redo_one(self, entity_type, entity_id, context) -> Tuple[Version, Version]:
        self.verify_chain(entity_type, entity_id)
        _, target = self.stack_tops(entity_type, entity_id)

        if target is None:
            raise NothingToRestore(f"Nothing to redo for {entity_type} {entity_id}")

        current = self._current_state(entity_type, entity_id)
        state = self._apply(current, target.redo, target)
        version = self._move_to(
            entity_type, entity_id, current, state, target.current_hash,
            meta={"redo_of": target.id},
            description=f"Redo {target.action} #{target.sequence}",
            **context,
        )
        return version, target

    def undo(self, entity_type, entity_id, *, session_id=None, actor_id=None) -> Version:
        """Undo the latest edit. Undoing a delete also restores what it cascaded to."""
        context = {"session_id": session_id, "actor_id": actor_id}
        version, target = self._undo_one(entity_type, entity_id, context)

        cascade_id = (target.meta or {}).get("cascade")
        if target.action == "delete" and cascade_id:
            for kind, member_id in self._cascade_members(entity_type, entity_id, cascade_id, redo=False):
                self._undo_one(kind, member_id, context)
        return version

    def redo(self, entity_type, entity_id, *, session_id=None, actor_id=None) -> Version:
        context = {"session_id": session_id, "actor_id": actor_id}
        version, target = self._redo_one(entity_type, entity_id, context)

        cascade_id = (target.meta or {}).get("cascade")
        if target.action == "delete" and cascade_id:
            members = self._cascade_members(entity_type, entity_id, cascade_id, redo=True)
            for kind, member_id in reversed(members):
                self._redo_one(kind, member_id, context)
        return version

    def reconstruct(self, entity_type, entity_id, target: Version, current, head: VersionHead):
        """
        State right after ``target``.

        Replays forward from the nearest snapshot or backward from the
        current state through inverse patches, whichever applies fewer,
        loading only the entries on that side.
        """
        floor = head.checkpoint_sequence or 1
        if target.sequence < floor:
            raise HistoryIntegrityError("Cannot restore past a reconciliation checkpoint")

        snapshot = (
            self._query(entity_type, entity_id)
            .filter(
                Version.sequence <= target.sequence,
                Version.sequence >= floor,
                Version.snapshot.isnot(None),
            )
            .order_by(Version.sequence.desc())
            .first()
        )

        forward_cost = target.sequence - (snapshot.sequence if snapshot is not None else 0)
        backward_cost = head.head_sequence - target.sequence

        if backward_cost < forward_cost:
            backward = self.entries(entity_type, entity_id, since=target.sequence + 1)
            if all(entry.undo is not None for entry in backward):
                state = current
                for entry in reversed(backward):
                    state = self._apply(state, entry.undo, entry)
                return state

        if snapshot is not None:
            state = copy.deepcopy(snapshot.snapshot_state)
            first = snapshot.sequence + 1
        else:
            state = None
            first = 1
        for entry in self.entries(entity_type, entity_id, since=first, until=target.sequence):
            state = self._apply(state, entry.redo, entry)
        return state

    def restore_to(self, entity_type, entity_id, version_id, *, session_id=None, actor_id=None) -> Version:
        self.verify_chain(entity_type, entity_id)
        target = self._query(entity_type, entity_id).filter(Version.id == version_id).first()
        if target is None:
            raise NotFound(f"Version {version_id} does not belong to {entity_type} {entity_id}")

        head = self.head(entity_type, entity_id)
        current = self._current_state(entity_type, entity_id)
        state = self.reconstruct(entity_type, entity_id, target, current, head)
        return self._move_to(
            entity_type, entity_id, current, state, target.current_hash,
            meta={"restored_from": target.id, "sequence": target.sequence},
            session_id=session_id, actor_id=actor_id,
            description=f"Restore to #{target.sequence}",
        )
