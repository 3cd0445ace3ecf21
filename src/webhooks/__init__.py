from .definition import SyncWebhook
from .manifest import build_app_manifest, build_webhooks
from .middleware import WebhookContext, WebhookError, WebhookRequest
from .subscription import selected_fields

__all__ = [
    "SyncWebhook",
    "build_app_manifest", "build_webhooks",
    "WebhookContext", "WebhookError", "WebhookRequest",
    "selected_fields",
]
