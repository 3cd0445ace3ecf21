from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeliveryOutcome(Enum):
    HANDLED = "HANDLED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


@dataclass
class DeliveryAttempt:
    """One signed webhook delivery sent by the platform simulator."""

    attempt_id: str
    event: str
    url: str
    status_code: int | None
    timestamp: datetime
    response_time_ms: float
    response_body: dict | None = None
    error: str | None = None


@dataclass
class ReceivedDelivery:
    """One webhook request served by the app."""

    delivery_id: str
    webhook_name: str
    event: str | None
    api_url: str | None
    status_code: int
    outcome: DeliveryOutcome
    timestamp: datetime
    response_time_ms: float
    error: str | None = None
