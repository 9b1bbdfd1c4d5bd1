from draftpress.extensions import db
from .publishable import PublishableModel


class Component(PublishableModel):
    __tablename__ = "components"

    name = db.Column(db.String(255), nullable=False, default="")
    layers = db.Column(db.JSON, nullable=False, default=list)


class LayerStyle(PublishableModel):
    __tablename__ = "layer_styles"

    name = db.Column(db.String(255), nullable=False, default="")
    classes = db.Column(db.Text, nullable=False, default="")
    design = db.Column(db.JSON(none_as_null=True), default=dict)  # per breakpoint
