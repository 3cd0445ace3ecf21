from .api_server import FakePlatformApi
from .deliverer import PlatformWebhookDeliverer
from .signer import JwsWebhookSigner, WebhookSigner

__all__ = [
    "FakePlatformApi",
    "JwsWebhookSigner",
    "PlatformWebhookDeliverer",
    "WebhookSigner",
]
