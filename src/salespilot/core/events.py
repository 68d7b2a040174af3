"""In-process change notifications (document updated / override updated)."""

import inspect
from collections import defaultdict
from typing import Any, Awaitable, Callable, Union

from salespilot.core.logging import get_logger
from salespilot.models.enums import EventTopic
from salespilot.models.event_schemas import ChangeEvent

logger = get_logger(__name__)

Handler = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


class ChangeNotifier:
    """Best-effort pub/sub. A failing subscriber is logged and skipped."""

    def __init__(self) -> None:
        self._handlers: dict[EventTopic, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: EventTopic, handler: Handler) -> None:
        if handler not in self._handlers[topic]:
            self._handlers[topic].append(handler)

    def unsubscribe(self, topic: EventTopic, handler: Handler) -> None:
        if handler in self._handlers[topic]:
            self._handlers[topic].remove(handler)

    def subscriber_count(self, topic: EventTopic) -> int:
        return len(self._handlers[topic])

    async def publish(self, event: ChangeEvent) -> int:
        """Deliver `event` to every subscriber of its topic; return how many succeeded."""
        delivered = 0
        for handler in list(self._handlers[event.topic]):
            try:
                result: Any = handler(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "events.subscriber_failed",
                    topic=event.topic.value,
                    customer_id=event.customer_id,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(exc),
                )
        logger.debug(
            "events.published",
            topic=event.topic.value,
            customer_id=event.customer_id,
            account_id=event.account_id,
            delivered=delivered,
        )
        return delivered
