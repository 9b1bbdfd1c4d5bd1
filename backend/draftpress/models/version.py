# draftpress/models/version.py
from sqlalchemy import event

from draftpress.extensions import db
from .base import BaseModel, utc_now


class Version(BaseModel):
    """
    One append-only entry of an entity's draft history.

    ``redo`` turns the previous state into this entry's state,
    ``undo`` turns it back (absent for creations).
    """

    __tablename__ = "versions"

    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(36), nullable=False)
    sequence = db.Column(db.Integer, nullable=False)

    action = db.Column(db.String(20), nullable=False, index=True)
    # create | update | delete | publish | unpublish | restore
    description = db.Column(db.String(255), nullable=True)

    redo = db.Column(db.JSON, nullable=False, default=list)
    undo = db.Column(db.JSON(none_as_null=True), nullable=True)
    snapshot = db.Column(db.JSON(none_as_null=True), nullable=True)
    meta = db.Column("metadata", db.JSON(none_as_null=True), nullable=True)

    previous_hash = db.Column(db.String(64), nullable=True)
    current_hash = db.Column(db.String(64), nullable=False)

    session_id = db.Column(db.String(64), nullable=True, index=True)
    actor_id = db.Column(db.String(36), nullable=True, index=True)

    __table_args__ = (
        db.UniqueConstraint("entity_type", "entity_id", "sequence", name="uq_version_sequence"),
        db.Index("idx_version_entity", "entity_type", "entity_id", "sequence"),
    )

    @property
    def has_snapshot(self):
        return self.snapshot is not None

    @property
    def snapshot_state(self):
        return (self.snapshot or {}).get("state")


@event.listens_for(Version, "before_update")
@event.listens_for(Version, "before_delete")
def prevent_version_mutation(mapper, connection, target):
    raise RuntimeError("Version entries are immutable")


class VersionHead(db.Model):
    """
    Per-entity side index: chain head, latest snapshot and latest
    reconciliation checkpoint. Reads start from these positions instead of
    the beginning of the log.
    """

    __tablename__ = "version_heads"

    entity_type = db.Column(db.String(50), primary_key=True)
    entity_id = db.Column(db.String(36), primary_key=True)
    head_sequence = db.Column(db.Integer, nullable=False, default=0)
    head_hash = db.Column(db.String(64), nullable=True)
    snapshot_sequence = db.Column(db.Integer, nullable=True)
    checkpoint_sequence = db.Column(db.Integer, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now)
