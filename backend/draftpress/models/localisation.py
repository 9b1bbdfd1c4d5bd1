from draftpress.extensions import db
from .publishable import PublishableModel, twin_foreign_key


class Locale(PublishableModel):
    __tablename__ = "locales"

    code = db.Column(db.String(16), nullable=False, default="", index=True)
    label = db.Column(db.String(255), nullable=False, default="")
    is_default = db.Column(db.Boolean, nullable=False, default=False)


class Translation(PublishableModel):
    __tablename__ = "translations"

    locale_id = db.Column(db.String(36), nullable=False, index=True)
    source_type = db.Column(db.String(50), nullable=False, default="page")  # page | folder | component | cms
    source_id = db.Column(db.String(36), nullable=False, default="")
    content_key = db.Column(db.String(255), nullable=False, default="")
    content_type = db.Column(db.String(50), nullable=False, default="text")
    content_value = db.Column(db.Text, nullable=True)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        twin_foreign_key("locale_id", "locales", name="fk_translation_locale"),
        db.Index("idx_translation_source", "source_type", "source_id", "is_published"),
    )
