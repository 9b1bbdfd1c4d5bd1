from .dispatcher import TaskDispatcher
from .webhooks import deliver_webhook, register_webhooks, sign_payload

__all__ = ["TaskDispatcher", "deliver_webhook", "register_webhooks", "sign_payload"]
