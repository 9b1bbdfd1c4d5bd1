# draftpress/models/publishable.py
from draftpress.extensions import db
from .base import utc_now
from .soft_delete_mixin import SoftDeleteMixin


def twin_foreign_key(column, parent_table, name=None):
    """
    Composite foreign key binding a child to the parent row of the SAME
    publish state. A draft child can never point at a published parent.
    """
    return db.ForeignKeyConstraint(
        [column, "is_published"],
        [f"{parent_table}.id", f"{parent_table}.is_published"],
        name=name,
    )


class PublishableModel(SoftDeleteMixin, db.Model):
    """
    Every publishable entity lives in two rows sharing one id:
    the draft (is_published=False) and its published twin.
    """

    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True)
    is_published = db.Column(db.Boolean, primary_key=True, default=False)
    content_hash = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utc_now, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

    def __repr__(self):
        state = "published" if self.is_published else "draft"
        return f"<{type(self).__name__} {self.id} {state}>"
