from src.apl.base import APL
from src.webhooks.definition import SyncWebhook
from src.webhooks.middleware import Step, build_pipeline
from src.webhooks.payment_gateway_initialize_session import (
    build_payment_gateway_initialize_session_webhook,
)
from src.webhooks.transaction_initialize_session import (
    build_transaction_initialize_session_webhook,
)

APP_ID = "saleor.app.cod"
APP_NAME = "Cash on delivery"
APP_VERSION = "1.0.0"
APP_PERMISSIONS = ["HANDLE_PAYMENTS"]
REGISTER_PATH = "api/register"


def build_webhooks(apl: APL, steps: tuple[Step, ...] | None = None) -> list[SyncWebhook]:
    """Both payment webhooks, sharing one request pipeline."""
    if steps is None:
        steps = build_pipeline()
    return [
        build_payment_gateway_initialize_session_webhook(apl, steps=steps),
        build_transaction_initialize_session_webhook(apl, steps=steps),
    ]


def build_app_manifest(base_url: str, webhooks: list[SyncWebhook]) -> dict:
    """Describe the app to the platform at install time."""
    base_url = base_url.rstrip("/")
    return {
        "id": APP_ID,
        "version": APP_VERSION,
        "name": APP_NAME,
        "permissions": list(APP_PERMISSIONS),
        "appUrl": base_url,
        "tokenTargetUrl": f"{base_url}/{REGISTER_PATH}",
        "webhooks": [webhook.manifest_entry(base_url) for webhook in webhooks],
        "extensions": [],
    }
