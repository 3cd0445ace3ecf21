import threading
from collections import deque

from src.models.delivery import DeliveryOutcome, ReceivedDelivery

DEFAULT_MAX_ENTRIES = 1000


class DeliveryLog:
    """Thread-safe record of the most recent webhook deliveries the app served.

    Only the last `max_entries` deliveries are kept; older ones are dropped as
    new ones arrive. A size of 0 keeps nothing.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._deliveries: deque[ReceivedDelivery] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._deliveries.maxlen

    def record(self, delivery: ReceivedDelivery) -> None:
        with self._lock:
            self._deliveries.append(delivery)

    def get_deliveries(self, webhook_name: str | None = None) -> list[ReceivedDelivery]:
        with self._lock:
            if webhook_name is None:
                return list(self._deliveries)
            return [d for d in self._deliveries if d.webhook_name == webhook_name]

    def get_rejected(self) -> list[ReceivedDelivery]:
        with self._lock:
            return [
                d for d in self._deliveries
                if d.outcome is not DeliveryOutcome.HANDLED
            ]

    def clear(self) -> None:
        with self._lock:
            self._deliveries.clear()
