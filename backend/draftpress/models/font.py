from draftpress.extensions import db
from .publishable import PublishableModel


class Font(PublishableModel):
    """Google, built-in or uploaded font; uploaded ones own a blob."""

    __tablename__ = "fonts"

    name = db.Column(db.String(255), nullable=False, default="")  # slug, e.g. "open-sans"
    family = db.Column(db.String(255), nullable=False, default="")
    type = db.Column(db.String(50), nullable=False, default="google")  # google | custom | default
    variants = db.Column(db.JSON, nullable=False, default=list)
    weights = db.Column(db.JSON, nullable=False, default=list)
    category = db.Column(db.String(100), nullable=False, default="")
    format = db.Column("kind", db.String(50), nullable=True)  # woff2, ttf, ...
    url = db.Column(db.Text, nullable=True)
    storage_path = db.Column(db.String(512), nullable=True, index=True)
    file_hash = db.Column(db.String(64), nullable=True)
