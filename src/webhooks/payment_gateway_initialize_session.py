import logging

from src.apl.base import APL
from src.models.events import PaymentGatewayInitializeSessionEvent
from src.webhooks.definition import SyncWebhook
from src.webhooks.middleware import Step, WebhookContext

logger = logging.getLogger(__name__)

WEBHOOK_NAME = "PAYMENT GATEWAY INIT"
WEBHOOK_PATH = "api/webhooks/payment-gateway-initialize-session"
EVENT = "PAYMENT_GATEWAY_INITIALIZE_SESSION"

PAYLOAD_FRAGMENT = """
fragment PaymentGatewayInitializeSessionEvent on PaymentGatewayInitializeSession {
  __typename
  recipient {
    id
    privateMetadata {
      key
      value
    }
    metadata {
      key
      value
    }
  }
  data
  amount
  issuingPrincipal {
    ... on Node {
      id
    }
  }
  sourceObject {
    __typename
    ... on Checkout {
      id
      channel {
        id
        slug
      }
      languageCode
      billingAddress {
        country {
          code
        }
      }
      total: totalPrice {
        gross {
          currency
          amount
        }
      }
    }
    ... on Order {
      id
      channel {
        id
        slug
      }
      languageCodeEnum
      userEmail
      billingAddress {
        country {
          code
        }
      }
      total {
        gross {
          currency
          amount
        }
      }
    }
  }
}
"""

SUBSCRIPTION = PAYLOAD_FRAGMENT + """
subscription PaymentGatewayInitializeSession {
  event {
    ...PaymentGatewayInitializeSessionEvent
  }
}
"""


def handle_payment_gateway_initialize_session(ctx: WebhookContext) -> dict:
    """Acknowledge the gateway for every session.

    Availability per channel or currency is not decided here; the gateway is
    always offered.
    """
    logger.info("cod checking: %s", ctx.raw_payload)
    return {"data": {"check": "ok cod"}}


def build_payment_gateway_initialize_session_webhook(
    apl: APL, steps: tuple[Step, ...] | None = None
) -> SyncWebhook:
    return SyncWebhook(
        name=WEBHOOK_NAME,
        webhook_path=WEBHOOK_PATH,
        event=EVENT,
        query=SUBSCRIPTION,
        apl=apl,
        payload_type=PaymentGatewayInitializeSessionEvent,
        handler=handle_payment_gateway_initialize_session,
        steps=steps,
    )
