from draftpress.extensions import db
from .publishable import PublishableModel, twin_foreign_key


class Collection(PublishableModel):
    __tablename__ = "collections"

    name = db.Column(db.String(255), nullable=False, default="")
    identifier = db.Column(db.String(255), nullable=False, default="", index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    sorting = db.Column(db.JSON(none_as_null=True), nullable=True)


class CollectionField(PublishableModel):
    __tablename__ = "collection_fields"

    collection_id = db.Column(db.String(36), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, default="")
    key = db.Column(db.String(255), nullable=False, default="")
    type = db.Column(db.String(50), nullable=False, default="text")
    order = db.Column(db.Integer, nullable=False, default=0)
    default = db.Column(db.Text, nullable=True)
    fillable = db.Column(db.Boolean, nullable=False, default=True)
    reference_collection_id = db.Column(db.String(36), nullable=True)
    settings = db.Column(db.JSON(none_as_null=True), default=dict)

    __table_args__ = (
        twin_foreign_key("collection_id", "collections", name="fk_field_collection"),
        db.Index("idx_field_collection_order", "collection_id", "is_published", "order"),
    )


class CollectionItem(PublishableModel):
    __tablename__ = "collection_items"

    collection_id = db.Column(db.String(36), nullable=False, index=True)
    manual_order = db.Column(db.Integer, nullable=False, default=0)
    is_publishable = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (
        twin_foreign_key("collection_id", "collections", name="fk_item_collection"),
        db.Index("idx_item_collection_order", "collection_id", "is_published", "manual_order"),
    )


class CollectionItemValue(PublishableModel):
    __tablename__ = "collection_item_values"

    item_id = db.Column(db.String(36), nullable=False, index=True)
    field_id = db.Column(db.String(36), nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)

    __table_args__ = (
        twin_foreign_key("item_id", "collection_items", name="fk_value_item"),
        twin_foreign_key("field_id", "collection_fields", name="fk_value_field"),
        db.Index("idx_value_item_field", "item_id", "field_id", "is_published"),
    )
