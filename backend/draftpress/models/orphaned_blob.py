from draftpress.extensions import db
from .base import BaseModel


class OrphanedBlob(BaseModel):
    """A storage path whose deletion failed and awaits the next sweep."""

    __tablename__ = "orphaned_blobs"

    storage_path = db.Column(db.String(512), nullable=False, unique=True)
    attempts = db.Column(db.Integer, nullable=False, default=1)
    last_error = db.Column(db.Text, nullable=True)
