# installer_ops/core/events.py
from typing import Dict, Any, Callable, List

from installer_ops.utils.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[str, Dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe channel owned by a single operation."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Subscribe to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Handler subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._handlers and handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
            logger.debug(f"Handler unsubscribed from {event_type}")

    def has_subscribers(self, event_type: str) -> bool:
        return bool(self._handlers.get(event_type))

    def publish(self, event_type: str, data: Dict[str, Any]) -> None:
        """
        Publish an event to all subscribers, in subscription order.

        A failing handler is logged and does not stop the others; progress
        consumers must never abort a file-system mutation.
        """
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(event_type, data)
            except Exception as e:
                logger.error(f"Event handler for {event_type} failed: {e}")
