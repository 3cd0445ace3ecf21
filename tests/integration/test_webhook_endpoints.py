"""Integration tests for the app server's webhook endpoints."""

import dataclasses
import http.client
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from src.app_server.server import PaymentAppServer
from src.config import SignatureScheme
from src.models.delivery import DeliveryOutcome
from src.models.events import PaymentGatewayInitializeSessionEvent
from src.webhooks.definition import SyncWebhook
from src.webhooks.middleware import build_pipeline


pytestmark = pytest.mark.integration

GATEWAY = "PAYMENT GATEWAY INIT"
TRANSACTION = "transaction-initialize-session"


class TestTransactionInitializeSessionEndpoint:

    def test_authorizes_transaction(self, app_server, deliverer, payload_factory):
        payload = payload_factory.transaction_initialize_session(amount=123.45)

        attempt = deliverer.deliver(
            "TRANSACTION_INITIALIZE_SESSION", payload, app_server.webhook_url(TRANSACTION),
        )

        assert attempt.status_code == 200
        assert attempt.response_body["result"] == "AUTHORIZATION_SUCCESS"
        assert attempt.response_body["amount"] == 123.45
        assert attempt.response_body["pspReference"] == payload["transaction"]["id"]
        assert attempt.response_body["externalUrl"] == "http://localhost:3000/"

    def test_integer_amount_stays_integer(self, app_server, deliverer, payload_factory):
        payload = payload_factory.transaction_initialize_session(amount=40)
        attempt = deliverer.deliver(
            "TRANSACTION_INITIALIZE_SESSION", payload, app_server.webhook_url(TRANSACTION),
        )
        assert attempt.response_body["amount"] == 40
        assert isinstance(attempt.response_body["amount"], int)

    def test_order_source_object(self, app_server, deliverer, payload_factory):
        payload = payload_factory.transaction_initialize_session(source_typename="Order")
        attempt = deliverer.deliver(
            "TRANSACTION_INITIALIZE_SESSION", payload, app_server.webhook_url(TRANSACTION),
        )
        assert attempt.status_code == 200

    def test_concurrent_deliveries_are_independent(self, app_server, deliverer, payload_factory):
        payloads = [payload_factory.transaction_initialize_session(amount=i) for i in range(1, 21)]
        url = app_server.webhook_url(TRANSACTION)

        with ThreadPoolExecutor(max_workers=8) as pool:
            attempts = list(pool.map(
                lambda p: deliverer.deliver("TRANSACTION_INITIALIZE_SESSION", p, url), payloads,
            ))

        assert all(a.status_code == 200 for a in attempts)
        assert [a.response_body["amount"] for a in attempts] == list(range(1, 21))
        assert len(app_server.delivery_log.get_deliveries(TRANSACTION)) == 20


class TestPaymentGatewayInitializeSessionEndpoint:

    @pytest.mark.parametrize("source_typename", ["Checkout", "Order"])
    def test_acknowledges(self, app_server, deliverer, payload_factory, source_typename):
        payload = payload_factory.payment_gateway_initialize_session(source_typename=source_typename)
        attempt = deliverer.deliver(
            "PAYMENT_GATEWAY_INITIALIZE_SESSION", payload, app_server.webhook_url(GATEWAY),
        )
        assert attempt.status_code == 200
        assert attempt.response_body == {"data": {"check": "ok cod"}}

    def test_acknowledges_minimal_payload(self, app_server, deliverer):
        attempt = deliverer.deliver(
            "PAYMENT_GATEWAY_INITIALIZE_SESSION", {}, app_server.webhook_url(GATEWAY),
        )
        assert attempt.response_body == {"data": {"check": "ok cod"}}

    def test_event_for_other_webhook_is_rejected(self, app_server, deliverer, payload_factory):
        attempt = deliverer.deliver(
            "TRANSACTION_INITIALIZE_SESSION",
            payload_factory.transaction_initialize_session(),
            app_server.webhook_url(GATEWAY),
        )
        assert attempt.status_code == 400


class TestRouting:

    def test_manifest(self, app_server):
        resp = requests.get(f"{app_server.url}/api/manifest", timeout=5)
        assert resp.status_code == 200
        manifest = resp.json()
        assert manifest["tokenTargetUrl"] == f"{app_server.url}/api/register"
        assert {w["targetUrl"] for w in manifest["webhooks"]} == {
            app_server.webhook_url(GATEWAY),
            app_server.webhook_url(TRANSACTION),
        }

    def test_manifest_uses_configured_app_url(self, app_config, installed_apl):
        config = dataclasses.replace(app_config, app_url="https://cod.example.com")
        server = PaymentAppServer(config, apl=installed_apl)
        server.start()
        try:
            manifest = requests.get(f"{server.url}/api/manifest", timeout=5).json()
        finally:
            server.stop()
        assert manifest["appUrl"] == "https://cod.example.com"

    def test_health(self, app_server):
        resp = requests.get(f"{app_server.url}/api/health", timeout=5)
        assert resp.json() == {"status": "ok"}

    def test_unknown_path_returns_404(self, app_server):
        resp = requests.post(f"{app_server.url}/api/webhooks/order-created", data=b"{}", timeout=5)
        assert resp.status_code == 404

    def test_get_on_webhook_returns_405(self, app_server):
        resp = requests.get(app_server.webhook_url(TRANSACTION), timeout=5)
        assert resp.status_code == 405

    def test_post_on_manifest_returns_405(self, app_server):
        resp = requests.post(f"{app_server.url}/api/manifest", timeout=5)
        assert resp.status_code == 405

    @pytest.mark.parametrize("content_length", ["abc", "-1"])
    def test_invalid_content_length_returns_400(self, app_server, content_length):
        conn = http.client.HTTPConnection("127.0.0.1", app_server.port, timeout=5)
        try:
            conn.putrequest("POST", "/api/webhooks/transaction-initialize-session")
            conn.putheader("Content-Length", content_length)
            conn.endheaders()
            resp = conn.getresponse()
            body = resp.read()
        finally:
            conn.close()

        assert resp.status == 400
        assert b"Content-Length" in body
        assert app_server.delivery_log.get_deliveries() == []


class TestDeliveryLog:

    def test_handled_delivery_is_recorded(self, app_server, deliverer, auth_data, payload_factory):
        deliverer.deliver(
            "TRANSACTION_INITIALIZE_SESSION",
            payload_factory.transaction_initialize_session(),
            app_server.webhook_url(TRANSACTION),
        )

        [delivery] = app_server.delivery_log.get_deliveries()
        assert delivery.webhook_name == TRANSACTION
        assert delivery.event == "transaction_initialize_session"
        assert delivery.api_url == auth_data.api_url
        assert delivery.status_code == 200
        assert delivery.outcome is DeliveryOutcome.HANDLED
        assert delivery.response_time_ms > 0

    def test_rejected_delivery_is_recorded(self, app_server, payload_factory):
        requests.post(app_server.webhook_url(TRANSACTION), data=b"{}", timeout=5)

        [delivery] = app_server.delivery_log.get_rejected()
        assert delivery.outcome is DeliveryOutcome.REJECTED
        assert delivery.status_code == 400
        assert "saleor-api-url" in delivery.error

    def test_log_keeps_only_the_latest_deliveries(self, app_config, installed_apl, deliverer):
        config = dataclasses.replace(app_config, delivery_log_size=3)
        server = PaymentAppServer(config, apl=installed_apl)
        server.start()
        try:
            for _ in range(10):
                deliverer.deliver(
                    "PAYMENT_GATEWAY_INITIALIZE_SESSION", {}, server.webhook_url(GATEWAY),
                )
            requests.post(server.webhook_url(GATEWAY), data=b"{}", timeout=5)
        finally:
            server.stop()

        deliveries = server.delivery_log.get_deliveries()
        assert len(deliveries) == 3
        assert [d.outcome for d in deliveries] == [
            DeliveryOutcome.HANDLED, DeliveryOutcome.HANDLED, DeliveryOutcome.REJECTED,
        ]

    def test_clear(self, app_server, deliverer):
        deliverer.deliver("PAYMENT_GATEWAY_INITIALIZE_SESSION", {}, app_server.webhook_url(GATEWAY))
        app_server.delivery_log.clear()
        assert app_server.delivery_log.get_deliveries() == []


class TestHandlerFailure:

    @pytest.fixture
    def failing_server(self, app_config, installed_apl):
        def explode(ctx):
            raise RuntimeError("boom")

        webhook = SyncWebhook(
            name="exploding",
            webhook_path="api/webhooks/payment-gateway-initialize-session",
            event="PAYMENT_GATEWAY_INITIALIZE_SESSION",
            query="subscription { event { amount } }",
            apl=installed_apl,
            payload_type=PaymentGatewayInitializeSessionEvent,
            handler=explode,
            steps=build_pipeline(SignatureScheme.HMAC),
        )
        server = PaymentAppServer(app_config, apl=installed_apl, webhooks=[webhook])
        server.start()
        yield server
        server.stop()

    def test_handler_fault_returns_500(self, failing_server, deliverer):
        attempt = deliverer.deliver(
            "PAYMENT_GATEWAY_INITIALIZE_SESSION", {}, failing_server.webhook_url("exploding"),
        )
        assert attempt.status_code == 500
        assert attempt.response_body == {"error": "internal server error"}

        [delivery] = failing_server.delivery_log.get_rejected()
        assert delivery.outcome is DeliveryOutcome.FAILED
        assert "boom" in delivery.error
