# draftpress/application/tasks/webhooks.py
import hashlib
import hmac
import json
import urllib.error
import urllib.request

from flask import current_app

from draftpress.extensions import db
from draftpress.models import Webhook

SIGNATURE_HEADER = "X-DraftPress-Signature"


class WebhookDeliveryError(RuntimeError):
    pass


def sign_payload(secret, body):
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def deliver_webhook(webhook_id, event, payload):
    webhook = db.session.get(Webhook, webhook_id)
    if webhook is None or not webhook.subscribes_to(event):
        return

    body = json.dumps({"event": event, "data": payload}, sort_keys=True).encode("utf-8")
    req = urllib.request.Request(webhook.url, data=body, method="POST")
    req.add_header("Content-Type", "application/json")
    req.add_header("X-DraftPress-Event", event)
    if webhook.secret:
        req.add_header(SIGNATURE_HEADER, f"sha256={sign_payload(webhook.secret, body)}")

    timeout = current_app.config.get("WEBHOOK_TIMEOUT_SECONDS", 5)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            current_app.logger.info(f"Webhook {webhook.id} delivered {event} ({resp.status})")
    except urllib.error.HTTPError as e:
        raise WebhookDeliveryError(f"Webhook {webhook.id} answered {e.code}") from e
    except urllib.error.URLError as e:
        raise WebhookDeliveryError(f"Webhook {webhook.id} unreachable: {e.reason}") from e


def register_webhooks(dispatcher):
    """Fan publish events out to every subscribed webhook, one task each."""

    def fan_out(event):
        def handler(payload):
            for webhook in Webhook.query.filter_by(enabled=True).all():
                if webhook.subscribes_to(event):
                    dispatcher.submit(deliver_webhook, webhook.id, event, payload)
        handler.__name__ = f"webhooks_{event}"
        return handler

    for event in ("publish", "unpublish"):
        dispatcher.subscribe(event, fan_out(event))
