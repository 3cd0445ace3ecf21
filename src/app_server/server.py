import json
import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable
from urllib.parse import urlsplit

from src.api_client.client import GraphQLClient, create_client
from src.apl.base import APL
from src.apl.factory import create_apl
from src.app_server.delivery_log import DeliveryLog
from src.app_server.register import register_app
from src.config import AppConfig
from src.models.delivery import DeliveryOutcome, ReceivedDelivery
from src.webhooks.definition import SyncWebhook
from src.webhooks.manifest import REGISTER_PATH, build_app_manifest, build_webhooks
from src.webhooks.middleware import WebhookError, WebhookRequest, build_pipeline

logger = logging.getLogger(__name__)

MANIFEST_ROUTE = "/api/manifest"
HEALTH_ROUTE = "/api/health"
REGISTER_ROUTE = "/" + REGISTER_PATH


class _AppRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler; routing lives in PaymentAppServer.dispatch."""

    def _read_request(self) -> WebhookRequest:
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length < 0:
            raise ValueError(f"negative Content-Length: {content_length}")
        # Raw bytes are kept: the signature covers the body exactly as sent
        body = self.rfile.read(content_length) if content_length else b""
        return WebhookRequest(
            method=self.command,
            path=urlsplit(self.path).path,
            headers=dict(self.headers.items()),
            body=body,
        )

    def _send_json(self, code: int, body: dict) -> None:
        data = json.dumps(body).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _handle(self) -> None:
        app = self.server.app  # type: ignore[attr-defined]
        try:
            request = self._read_request()
        except ValueError:
            # the body length is unknown, so the connection cannot be reused
            self.close_connection = True
            self._send_json(400, {"error": "Invalid Content-Length header"})
            return
        code, body = app.dispatch(request)
        self._send_json(code, body)

    def do_GET(self):
        self._handle()

    def do_POST(self):
        self._handle()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class PaymentAppServer:
    """Serves the app manifest, the install endpoint and the payment webhooks."""

    def __init__(
        self,
        config: AppConfig,
        apl: APL | None = None,
        webhooks: list[SyncWebhook] | None = None,
        client_factory: Callable[..., GraphQLClient] = create_client,
        host: str | None = None,
        port: int | None = None,
    ):
        self.config = config
        self.apl = apl if apl is not None else create_apl(config)
        if webhooks is None:
            webhooks = build_webhooks(self.apl, build_pipeline(config.signature_scheme))
        self.webhooks = webhooks
        self.client_factory = client_factory
        self.delivery_log = DeliveryLog(config.delivery_log_size)
        self._routes = {webhook.route: webhook for webhook in self.webhooks}
        self._host = host or config.host
        self._port = config.port if port is None else port
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def base_url(self, request: WebhookRequest) -> str:
        if self.config.app_url:
            return self.config.app_url
        host = request.header("host") or f"{self._host}:{self._port}"
        proto = request.header("x-forwarded-proto") or "http"
        return f"{proto}://{host}"

    def dispatch(self, request: WebhookRequest) -> tuple[int, dict]:
        """Route one request; returns the status code and JSON body."""
        path = request.path.rstrip("/") or "/"

        if path == MANIFEST_ROUTE:
            if request.method != "GET":
                return 405, {"error": "method not allowed"}
            return 200, build_app_manifest(self.base_url(request), self.webhooks)

        if path == HEALTH_ROUTE:
            return 200, {"status": "ok"}

        if path == REGISTER_ROUTE:
            if request.method != "POST":
                return 405, {"error": "method not allowed"}
            return register_app(request, self.config, self.apl, self.client_factory)

        webhook = self._routes.get(path)
        if webhook is not None:
            return self._deliver(webhook, request)

        return 404, {"error": "not found"}

    def _deliver(self, webhook: SyncWebhook, request: WebhookRequest) -> tuple[int, dict]:
        start = time.monotonic()
        error = None

        try:
            body = webhook.process(request, self.base_url(request))
            code, outcome = 200, DeliveryOutcome.HANDLED
        except WebhookError as e:
            logger.info("Rejected %s delivery: %s", webhook.name, e.message)
            code, outcome, error = e.status, DeliveryOutcome.REJECTED, e.message
            body = {"error": e.message}
        except Exception as e:
            logger.exception("Handler for %s failed", webhook.name)
            code, outcome, error = 500, DeliveryOutcome.FAILED, repr(e)
            body = {"error": "internal server error"}

        self.delivery_log.record(ReceivedDelivery(
            delivery_id=f"dlv_{uuid.uuid4().hex[:16]}",
            webhook_name=webhook.name,
            event=request.header("saleor-event"),
            api_url=request.header("saleor-api-url"),
            status_code=code,
            outcome=outcome,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=(time.monotonic() - start) * 1000,
            error=error,
        ))
        return code, body

    def _bind(self) -> ThreadingHTTPServer:
        server = ThreadingHTTPServer((self._host, self._port), _AppRequestHandler)
        server.app = self  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = server.server_address[1]
        return server

    def start(self) -> None:
        """Serve in a background thread."""
        self._server = self._bind()
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Payment app listening on %s", self.url)

    def serve_forever(self) -> None:
        """Serve in the calling thread until interrupted."""
        self._server = self._bind()
        logger.info("Payment app listening on %s", self.url)
        try:
            self._server.serve_forever()
        finally:
            self._server.server_close()
            self._server = None

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port

    def webhook_url(self, webhook_name: str) -> str:
        for webhook in self.webhooks:
            if webhook.name == webhook_name:
                return webhook.target_url(self.url)
        raise KeyError(webhook_name)
