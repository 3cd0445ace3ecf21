import logging
import math
import time
from typing import Callable

from src.apl.base import APL
from src.models.events import TransactionInitializeSessionEvent
from src.models.transaction import TransactionResult, TransactionResultType
from src.utils.time import unix_timestamp_to_iso
from src.webhooks.definition import Handler, SyncWebhook
from src.webhooks.middleware import Step, WebhookContext

logger = logging.getLogger(__name__)

WEBHOOK_NAME = "transaction-initialize-session"
WEBHOOK_PATH = "api/webhooks/transaction-initialize-session"
EVENT = "TRANSACTION_INITIALIZE_SESSION"

COD_EXTERNAL_URL = "http://localhost:3000/"
COD_MESSAGE = "Successfull COD"

# Fields read by authorize_cash_on_delivery
REQUIRED_FIELDS = ("transaction.id", "action.amount")

PAYLOAD_FRAGMENT = """
fragment TransactionInitializeSessionAddress on Address {
  firstName
  lastName
  phone
  city
  streetAddress1
  streetAddress2
  postalCode
  countryArea
  companyName
  country {
    code
  }
}

fragment TaxedMoneyParts on TaxedMoney {
  gross {
    currency
    amount
  }
  net {
    currency
    amount
  }
  tax {
    currency
    amount
  }
}

fragment OrderOrCheckoutLines on OrderOrCheckout {
  __typename
  ... on Checkout {
    channel {
      id
      slug
    }
    shippingPrice {
      ...TaxedMoneyParts
    }
    deliveryMethod {
      __typename
      ... on ShippingMethod {
        id
        name
      }
    }
    lines {
      __typename
      id
      quantity
      totalPrice {
        ...TaxedMoneyParts
      }
      checkoutVariant: variant {
        name
        sku
        product {
          name
          thumbnail {
            url
          }
          category {
            name
          }
        }
      }
    }
  }
  ... on Order {
    channel {
      id
      slug
    }
    shippingPrice {
      ...TaxedMoneyParts
    }
    deliveryMethod {
      __typename
      ... on ShippingMethod {
        id
        name
      }
    }
    lines {
      __typename
      id
      quantity
      taxRate
      totalPrice {
        ...TaxedMoneyParts
      }
      orderVariant: variant {
        name
        sku
        product {
          name
          thumbnail {
            url
          }
          category {
            name
          }
        }
      }
    }
  }
}

fragment OrderOrCheckoutSourceObject on OrderOrCheckout {
  __typename
  ... on Checkout {
    id
    languageCode
    channel {
      id
      slug
    }
    userEmail: email
    billingAddress {
      ...TransactionInitializeSessionAddress
    }
    shippingAddress {
      ...TransactionInitializeSessionAddress
    }
    total: totalPrice {
      gross {
        currency
        amount
      }
    }
    ...OrderOrCheckoutLines
  }
  ... on Order {
    id
    languageCodeEnum
    userEmail
    channel {
      id
      slug
    }
    billingAddress {
      ...TransactionInitializeSessionAddress
    }
    shippingAddress {
      ...TransactionInitializeSessionAddress
    }
    total {
      gross {
        currency
        amount
      }
    }
    ...OrderOrCheckoutLines
  }
}

fragment TransactionInitializeSessionEvent on TransactionInitializeSession {
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
  merchantReference
  action {
    amount
    currency
    actionType
  }
  issuingPrincipal {
    ... on Node {
      id
    }
  }
  transaction {
    id
    pspReference
  }
  sourceObject {
    __typename
    ...OrderOrCheckoutSourceObject
  }
}
"""

SUBSCRIPTION = PAYLOAD_FRAGMENT + """
subscription TransactionInitializeSession {
  event {
    ...TransactionInitializeSessionEvent
  }
}
"""


def authorize_cash_on_delivery(
    event: TransactionInitializeSessionEvent, now: float
) -> TransactionResult:
    """Authorize the transaction unconditionally.

    The action type is not inspected and repeated deliveries for the same
    transaction each get a fresh success.
    """
    return TransactionResult(
        psp_reference=str(event.transaction.id),
        result=TransactionResultType.AUTHORIZATION_SUCCESS,
        amount=event.action.amount,
        time=unix_timestamp_to_iso(math.floor(now)),
        external_url=COD_EXTERNAL_URL,
        message=COD_MESSAGE,
    )


def make_transaction_initialize_session_handler(
    clock: Callable[[], float] = time.time,
) -> Handler:
    def handle_transaction_initialize_session(ctx: WebhookContext) -> dict:
        logger.info("transaction checking: %s", ctx.raw_payload)
        return authorize_cash_on_delivery(ctx.payload, clock()).to_response()

    return handle_transaction_initialize_session


def build_transaction_initialize_session_webhook(
    apl: APL,
    clock: Callable[[], float] = time.time,
    steps: tuple[Step, ...] | None = None,
) -> SyncWebhook:
    return SyncWebhook(
        name=WEBHOOK_NAME,
        webhook_path=WEBHOOK_PATH,
        event=EVENT,
        query=SUBSCRIPTION,
        apl=apl,
        payload_type=TransactionInitializeSessionEvent,
        handler=make_transaction_initialize_session_handler(clock),
        required_fields=REQUIRED_FIELDS,
        steps=steps,
    )
