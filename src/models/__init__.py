from .auth import AuthData
from .events import (
    PayloadError,
    PaymentGatewayInitializeSessionEvent,
    TransactionInitializeSessionEvent,
)
from .transaction import TransactionResult, TransactionResultType
from .delivery import DeliveryAttempt, DeliveryOutcome, ReceivedDelivery

__all__ = [
    "AuthData",
    "PayloadError",
    "PaymentGatewayInitializeSessionEvent", "TransactionInitializeSessionEvent",
    "TransactionResult", "TransactionResultType",
    "DeliveryAttempt", "DeliveryOutcome", "ReceivedDelivery",
]
