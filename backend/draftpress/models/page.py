from draftpress.extensions import db
from .publishable import PublishableModel, twin_foreign_key


class PageFolder(PublishableModel):
    __tablename__ = "page_folders"

    name = db.Column(db.String(255), nullable=False, default="")
    slug = db.Column(db.String(255), nullable=False, default="", index=True)
    page_folder_id = db.Column(db.String(36), nullable=True, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    depth = db.Column(db.Integer, nullable=False, default=0)
    settings = db.Column(db.JSON(none_as_null=True), default=dict)

    __table_args__ = (
        twin_foreign_key("page_folder_id", "page_folders", name="fk_page_folder_parent"),
        db.Index("idx_page_folder_parent_order", "page_folder_id", "is_published", "order"),
    )


class Page(PublishableModel):
    __tablename__ = "pages"

    name = db.Column(db.String(255), nullable=False, default="")
    slug = db.Column(db.String(255), nullable=False, default="", index=True)
    page_folder_id = db.Column(db.String(36), nullable=True, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    depth = db.Column(db.Integer, nullable=False, default=0)
    is_index = db.Column(db.Boolean, nullable=False, default=False)
    is_dynamic = db.Column(db.Boolean, nullable=False, default=False)
    error_page = db.Column(db.Integer, nullable=True)  # 401 | 404 | 500
    settings = db.Column(db.JSON(none_as_null=True), default=dict)

    __table_args__ = (
        twin_foreign_key("page_folder_id", "page_folders", name="fk_page_folder"),
        db.Index("idx_page_folder_order", "page_folder_id", "is_published", "order"),
    )


class PageLayers(PublishableModel):
    __tablename__ = "page_layers"

    page_id = db.Column(db.String(36), nullable=False, index=True)
    layers = db.Column(db.JSON, nullable=False, default=list)
    generated_css = db.Column(db.Text, nullable=True)

    __table_args__ = (
        twin_foreign_key("page_id", "pages", name="fk_page_layers_page"),
        db.Index("idx_page_layers_page", "page_id", "is_published"),
    )
