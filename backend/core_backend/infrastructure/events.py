"""
Explicit event bus for "data changed" notifications.

Each topic is backed by its own django.dispatch.Signal. Subscribers register
at construction time and get back a callable that disconnects them, so a
consumer being torn down never leaves a dangling receiver behind.

Usage:
    from core_backend.infrastructure.events import event_bus, TAB_CHANGED

    unsubscribe = event_bus.subscribe(TAB_CHANGED, self.on_tab_changed)
    ...
    unsubscribe()
"""
import logging
from typing import Callable, Dict

from django.dispatch import Signal

logger = logging.getLogger(__name__)

DATA_CHANGED = "data_changed"
SESSION_CHANGED = "session_changed"
TAB_CHANGED = "tab_changed"
TABLE_CHANGED = "table_changed"
STOCK_CHANGED = "stock_changed"
SETTLEMENT_COMPLETED = "settlement_completed"

TOPICS = (
    DATA_CHANGED,
    SESSION_CHANGED,
    TAB_CHANGED,
    TABLE_CHANGED,
    STOCK_CHANGED,
    SETTLEMENT_COMPLETED,
)


class EventBus:
    """Topic-keyed collection of signals with explicit subscribe/unsubscribe."""

    def __init__(self, topics=TOPICS):
        self._signals: Dict[str, Signal] = {topic: Signal() for topic in topics}

    def _signal(self, topic: str) -> Signal:
        try:
            return self._signals[topic]
        except KeyError:
            raise ValueError(f"Unknown event topic '{topic}'")

    @staticmethod
    def _uid(topic: str, handler: Callable) -> str:
        # Bound methods are rebuilt on every attribute access; key on owner + function.
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            return f"{topic}:{id(handler.__self__)}:{id(handler.__func__)}"
        return f"{topic}:{id(handler)}"

    def subscribe(self, topic: str, handler: Callable) -> Callable[[], None]:
        """
        Connect handler(sender, **payload) to a topic.

        Returns a zero-argument callable that unsubscribes the handler.
        """
        self._signal(topic).connect(
            handler, weak=False, dispatch_uid=self._uid(topic, handler)
        )

        def unsubscribe():
            self.unsubscribe(topic, handler)

        return unsubscribe

    def unsubscribe(self, topic: str, handler: Callable) -> bool:
        return self._signal(topic).disconnect(dispatch_uid=self._uid(topic, handler))

    def publish(self, topic: str, sender=None, **payload) -> None:
        """
        Notify subscribers. A failing subscriber is logged and does not stop
        delivery to the others, nor does it propagate to the publisher.
        """
        responses = self._signal(topic).send_robust(sender=sender, **payload)
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    f"Subscriber {getattr(receiver, '__name__', receiver)} failed on '{topic}': {response}"
                )
        if topic != DATA_CHANGED:
            self._signal(DATA_CHANGED).send_robust(sender=sender, topic=topic, **payload)

    def has_subscribers(self, topic: str) -> bool:
        return self._signal(topic).has_listeners()


event_bus = EventBus()
