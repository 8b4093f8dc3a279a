"""
Domain events emitted by the ledger.

Events are staged while a mutation runs and only delivered once the mutation
has committed. Delivery is fire-and-forget: a failing subscriber is logged
and the remaining subscribers still receive the event.
"""

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Union

from tuition_ledger.core.enums import LedgerEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEvent:
    event_type: LedgerEventType
    payload: Dict[str, Any]
    timestamp: int = field(default_factory=lambda: int(time.time()))


Subscriber = Callable[[LedgerEvent], Union[None, Awaitable[None]]]


class EventQueue:
    """Outbound event queue owned by one ledger instance."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._staged: List[LedgerEvent] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def stage(self, event_type: LedgerEventType, **payload: Any) -> None:
        self._staged.append(LedgerEvent(event_type=event_type, payload=payload))

    def discard(self) -> None:
        self._staged.clear()

    async def flush(self) -> List[LedgerEvent]:
        events, self._staged = self._staged, []
        for event in events:
            logger.info("event %s %s", event.event_type.value, event.payload)
            for subscriber in list(self._subscribers):
                try:
                    result = subscriber(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception(
                        "Subscriber %r failed on %s", subscriber, event.event_type.value
                    )
        return events
