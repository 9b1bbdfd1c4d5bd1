from draftpress.extensions import db
from .publishable import PublishableModel, twin_foreign_key


class AssetFolder(PublishableModel):
    __tablename__ = "asset_folders"

    name = db.Column(db.String(255), nullable=False, default="")
    asset_folder_id = db.Column(db.String(36), nullable=True, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    depth = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        twin_foreign_key("asset_folder_id", "asset_folders", name="fk_asset_folder_parent"),
        db.Index("idx_asset_folder_parent_order", "asset_folder_id", "is_published", "order"),
    )


class Asset(PublishableModel):
    __tablename__ = "assets"

    filename = db.Column(db.String(255), nullable=False, default="")
    asset_folder_id = db.Column(db.String(36), nullable=True, index=True)
    mime_type = db.Column(db.String(100), nullable=True)
    storage_path = db.Column(db.String(512), nullable=True, index=True)
    file_size = db.Column(db.Integer, nullable=True)
    width = db.Column(db.Integer, nullable=True)
    height = db.Column(db.Integer, nullable=True)
    source = db.Column(db.String(50), nullable=False, default="library")  # library | cms
    content = db.Column(db.Text, nullable=True)  # inline SVG

    __table_args__ = (
        twin_foreign_key("asset_folder_id", "asset_folders", name="fk_asset_folder"),
    )
