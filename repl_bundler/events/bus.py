"""Event bus carrying status notifications and bundle results."""

import logging
from collections.abc import Callable

from repl_bundler.events.schemas import BundlerEvent
from repl_bundler.events.schemas import StatusEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Simple event bus for publishing and subscribing to bundler events.

    Subscribers are called synchronously. Errors in handlers are isolated
    and logged to prevent one failing handler from breaking others.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[BundlerEvent], None]] = []

    def subscribe(self, handler: Callable[[BundlerEvent], None]) -> None:
        """Subscribe a handler to receive all events.

        Args:
            handler: Callable that takes a StatusEvent or BundleResult
        """
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Callable[[BundlerEvent], None]) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, event: BundlerEvent) -> None:
        """Publish an event to all subscribers.

        Errors in handlers are caught and logged to prevent cascading failures.

        Args:
            event: Event to publish
        """
        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler {getattr(handler, '__name__', handler)!r}")

    def status(self, uid: int, message: str) -> None:
        """Publish a StatusEvent for request `uid`."""
        logger.debug(f"[status:{uid}] {message}")
        self.publish(StatusEvent(uid=uid, message=message))
