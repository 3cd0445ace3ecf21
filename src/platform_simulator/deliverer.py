import json
import time
import uuid
from datetime import datetime, timezone
from urllib.parse import urlsplit

import requests

from src.models.auth import AuthData
from src.models.delivery import DeliveryAttempt
from src.platform_simulator.signer import JwsWebhookSigner, WebhookSigner
from src.webhooks.middleware import (
    API_URL_HEADER,
    DOMAIN_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
)


class PlatformWebhookDeliverer:
    """Delivers signed webhook events to the app the way the platform does."""

    def __init__(
        self,
        auth_data: AuthData,
        timeout_seconds: float = 30,
        signer: JwsWebhookSigner | WebhookSigner | None = None,
    ):
        self.auth_data = auth_data
        # without a platform key the body is HMAC-signed with the app token
        self.signer = signer if signer is not None else WebhookSigner(auth_data.token)
        self.timeout_seconds = timeout_seconds

    def build_headers(self, event: str, body: bytes) -> dict:
        return {
            "Content-Type": "application/json",
            API_URL_HEADER: self.auth_data.api_url,
            DOMAIN_HEADER: urlsplit(self.auth_data.api_url).netloc,
            EVENT_HEADER: event.lower(),
            SIGNATURE_HEADER: self.signer.sign(body),
        }

    def deliver(self, event: str, payload: dict, url: str) -> DeliveryAttempt:
        """Deliver a single event payload. Returns the delivery attempt result."""
        body = json.dumps(payload, default=str).encode()
        headers = self.build_headers(event, body)

        start = time.monotonic()
        status_code = None
        response_body = None
        error = None

        try:
            resp = requests.post(
                url,
                data=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            status_code = resp.status_code
            try:
                response_body = resp.json()
            except ValueError:
                response_body = None
        except requests.exceptions.Timeout:
            error = "timeout"
        except requests.exceptions.ConnectionError:
            error = "connection_error"
        except requests.exceptions.RequestException as e:
            error = str(e)

        elapsed_ms = (time.monotonic() - start) * 1000

        return DeliveryAttempt(
            attempt_id=f"att_{uuid.uuid4().hex[:16]}",
            event=event,
            url=url,
            status_code=status_code,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=elapsed_ms,
            response_body=response_body,
            error=error,
        )
