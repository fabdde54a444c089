"""
Observer hub used by the stores.

Stores own a single EventHub and publish an event after every state
transition. Consumers subscribe to the events they care about, optionally
restricted to a set of event types and to a single subject id (node or tab).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Hashable, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT")


@dataclass(eq=False)
class Subscription:
    """Handle returned by EventHub.subscribe; call cancel() to stop receiving events."""

    callback: Callable[[Any], None]
    event_types: Optional[Set[Hashable]] = None
    subject_id: Optional[str] = None
    active: bool = True
    _hub: Optional["EventHub"] = field(default=None, repr=False)

    def matches(self, event_type: Hashable, subject_ids: Set[str]) -> bool:
        if not self.active:
            return False
        if self.event_types is not None and event_type not in self.event_types:
            return False
        if self.subject_id is not None and self.subject_id not in subject_ids:
            return False
        return True

    def cancel(self) -> None:
        """Unsubscribe from the hub."""
        if self._hub is not None:
            self._hub.unsubscribe(self)


class EventHub(Generic[EventT]):
    """
    Explicit subscription registry.

    Events must expose ``type`` and ``subject_ids()``. Callbacks run
    synchronously, in subscription order, after the state transition
    has completed. A failing callback is logged and does not prevent
    other subscribers from being notified.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._subscriptions: List[Subscription] = []

    def subscribe(
        self,
        callback: Callable[[EventT], None],
        subject_id: Optional[str] = None,
        event_types: Optional[Set[Hashable]] = None,
    ) -> Subscription:
        """
        Register a callback.

        Args:
            callback: Function receiving the event
            subject_id: Only deliver events concerning this id
            event_types: Only deliver events of these types

        Returns:
            Subscription handle
        """
        subscription = Subscription(
            callback=callback,
            event_types=set(event_types) if event_types else None,
            subject_id=subject_id,
            _hub=self,
        )
        self._subscriptions.append(subscription)
        logger.debug(
            f"[{self.name}] Subscribed {getattr(callback, '__qualname__', callback)} "
            f"(subject={subject_id}, types={event_types})"
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: EventT) -> None:
        """Deliver *event* to every matching subscriber."""
        event_type = getattr(event, "type")
        subject_ids = set(event.subject_ids())
        for subscription in list(self._subscriptions):
            if not subscription.matches(event_type, subject_ids):
                continue
            try:
                subscription.callback(event)
            except Exception as e:
                logger.error(
                    f"[{self.name}] Error notifying subscriber for {event_type}: {e}",
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._subscriptions)
