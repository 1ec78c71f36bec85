"""Post-commit cache invalidation events"""

import logging
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)

CARD_DATA = "card"
TRANSACTION_DATA = "transaction"


@dataclass(frozen=True)
class CacheInvalidation:
    """Data of `kind` changed for `user_id`; cached views of it are stale"""

    kind: str
    user_id: str

    def to_payload(self) -> dict:
        return {"event": "CACHE_INVALIDATED", "kind": self.kind, "user_id": self.user_id}


Subscriber = Callable[[CacheInvalidation], None]


class EventPublisher:
    """Fan-out of invalidation events to the host's caching layer"""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: CacheInvalidation) -> None:
        logger.debug("Publishing %s invalidation for user %s", event.kind, event.user_id)
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                # Write is already committed
                logger.exception("Invalidation subscriber failed", extra={"kind": event.kind})


class RecordingPublisher(EventPublisher):
    """Publisher that also keeps every event it saw"""

    def __init__(self):
        super().__init__()
        self.events: List[CacheInvalidation] = []

    def publish(self, event: CacheInvalidation) -> None:
        self.events.append(event)
        super().publish(event)
