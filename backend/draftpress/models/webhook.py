from draftpress.extensions import db
from .base import BaseModel


class Webhook(BaseModel):
    __tablename__ = "webhooks"

    url = db.Column(db.String(1024), nullable=False)
    secret = db.Column(db.String(255), nullable=True)
    events = db.Column(db.JSON, nullable=False, default=list)  # publish | unpublish
    enabled = db.Column(db.Boolean, nullable=False, default=True)

    def subscribes_to(self, event_name):
        return self.enabled and (not self.events or event_name in self.events)
