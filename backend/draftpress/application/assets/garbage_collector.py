# draftpress/application/assets/garbage_collector.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Set, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from draftpress.domain.exceptions import AssetCleanupFailed
from draftpress.extensions import db
from draftpress.models import Asset, Font, OrphanedBlob

# (model, column) pairs that hold storage paths.
STORAGE_REFERENCES: Tuple[Tuple[type, str], ...] = (
    (Asset, "storage_path"),
    (Font, "storage_path"),
)

# Keeps IN (...) lists well below driver parameter limits.
QUERY_CHUNK_SIZE = 500


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


@dataclass
class CollectionResult:
    removed: List[str] = field(default_factory=list)
    retained: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class AssetGarbageCollector:
    """
    Deletes blobs no longer referenced by any draft or published row.

    Soft-deleted drafts still count: undo can bring them back, so their
    blobs stay until the purge hard-deletes the rows.

    Best effort: a failing backend never fails the operation that
    triggered collection. Failed paths are kept for ``sweep``.
    """

    def __init__(self, blob_store, *, batch_size: int = 100, references=STORAGE_REFERENCES):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.blob_store = blob_store
        self.batch_size = batch_size
        self.references = references

    def referenced_paths(self, paths: Sequence[str]) -> Set[str]:
        referenced: Set[str] = set()
        for model, column_name in self.references:
            column = getattr(model, column_name)
            for chunk in _chunks(list(paths), QUERY_CHUNK_SIZE):
                rows = (
                    db.session.query(column)
                    .filter(column.in_(chunk))
                    .distinct()
                    .all()
                )
                referenced.update(row[0] for row in rows)
        return referenced

    def collect(self, paths: Iterable[str]) -> CollectionResult:
        result = CollectionResult()
        candidates = sorted({path for path in paths if path})
        if not candidates:
            return result

        try:
            referenced = self.referenced_paths(candidates)
        except SQLAlchemyError as exc:
            current_app.logger.error(f"Asset GC skipped, reference check failed: {exc}")
            db.session.rollback()
            result.failed.extend(candidates)
            self._remember_failures(candidates, str(exc))
            return result

        orphaned = [path for path in candidates if path not in referenced]
        result.retained.extend(path for path in candidates if path in referenced)

        for batch in _chunks(orphaned, self.batch_size):
            try:
                self.blob_store.remove(batch)
            except AssetCleanupFailed as exc:
                current_app.logger.error(f"Asset cleanup failed for {len(batch)} blobs: {exc}")
                result.failed.extend(batch)
                self._remember_failures(batch, str(exc))
                continue
            result.removed.extend(batch)

        if result.removed:
            current_app.logger.info(f"Asset GC removed {len(result.removed)} blobs")
        return result

    def _remember_failures(self, paths: Sequence[str], error: str):
        try:
            for path in paths:
                pending = OrphanedBlob.query.filter_by(storage_path=path).first()
                if pending is None:
                    db.session.add(OrphanedBlob(storage_path=path, last_error=error))
                else:
                    pending.attempts += 1
                    pending.last_error = error
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"Could not record {len(paths)} orphaned blobs: {exc}")

    def sweep(self) -> CollectionResult:
        """Retry paths whose earlier deletion failed."""
        pending = OrphanedBlob.query.order_by(OrphanedBlob.created_at).all()
        if not pending:
            return CollectionResult()

        result = self.collect([blob.storage_path for blob in pending])
        settled = set(result.removed) | set(result.retained)
        for blob in pending:
            if blob.storage_path in settled:
                db.session.delete(blob)
        db.session.commit()
        return result
