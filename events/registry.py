"""Subscription registry: event type -> set of subscriber callbacks"""

import logging
from typing import Callable, Dict, List, Set

from .models import WILDCARD

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class _Subscription:
    """Opaque handle so the same callable can be registered twice"""

    __slots__ = ("callback",)

    def __init__(self, callback: Callable):
        self.callback = callback


class SubscriptionRegistry:
    """Maps an event type (or the ``*`` wildcard) to its subscribers"""

    def __init__(self):
        self._subscriptions: Dict[str, Set[_Subscription]] = {}

    def add(self, event_type: str, callback: Callable) -> Unsubscribe:
        """Register ``callback`` for exactly one event type

        Returns:
            Disposer removing only this registration; safe to call twice
        """
        subscription = _Subscription(callback)
        self._subscriptions.setdefault(event_type, set()).add(subscription)

        def unsubscribe():
            subscribers = self._subscriptions.get(event_type)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscriptions[event_type]

        return unsubscribe

    def subscribers(self, event_type: str) -> List[Callable]:
        """Type-specific subscribers followed by wildcard subscribers"""
        callbacks = [s.callback for s in self._subscriptions.get(event_type, ())]
        if event_type != WILDCARD:
            callbacks.extend(s.callback for s in self._subscriptions.get(WILDCARD, ()))
        return callbacks

    def notify(self, event_type: str, event) -> None:
        """Call every subscriber; a failing subscriber does not stop the others"""
        for callback in self.subscribers(event_type):
            try:
                callback(event)
            except Exception:
                logger.exception(f"[Events] Subscriber for {event_type} raised")

    def count(self, event_type: str) -> int:
        return len(self._subscriptions.get(event_type, ()))
