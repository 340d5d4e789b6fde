"""
Change Notification Bus

Synchronous in-process publish/subscribe. Mutating services publish a topic
after the mutation completes; reactive consumers re-query on receipt.
Notifications carry no payload beyond the topic itself.
"""

from enum import Enum
from typing import Callable

from household_ledger.audit import get_logger


class ChangeTopic(str, Enum):
    """One topic per collection."""
    TRANSACTIONS_CHANGED = "transactions_changed"
    ACCOUNTS_CHANGED = "accounts_changed"
    CATEGORIES_CHANGED = "categories_changed"
    CREDIT_FACILITIES_CHANGED = "credit_facilities_changed"
    LOANS_CHANGED = "loans_changed"
    BUDGETS_CHANGED = "budgets_changed"
    RECURRING_CHANGED = "recurring_changed"
    HOUSEHOLD_CHANGED = "household_changed"
    SHARED_SNAPSHOT_CHANGED = "shared_snapshot_changed"


ChangeHandler = Callable[[ChangeTopic], None]


class ChangeBus:
    """
    Topic -> handlers registry.

    Handlers are called in subscription order. A failing handler is logged
    and skipped so one broken consumer cannot block the others or the
    mutation that triggered it.
    """

    def __init__(self):
        self._subscribers: dict[ChangeTopic, list[ChangeHandler]] = {}
        self._logger = get_logger("notifications")

    def subscribe(self, topic: ChangeTopic, handler: ChangeHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._subscribers.setdefault(topic, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(topic, handler)

        return unsubscribe

    def unsubscribe(self, topic: ChangeTopic, handler: ChangeHandler) -> None:
        handlers = self._subscribers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, *topics: ChangeTopic) -> None:
        """Notify every subscriber of each topic, once per topic."""
        for topic in dict.fromkeys(topics):
            for handler in list(self._subscribers.get(topic, [])):
                try:
                    handler(topic)
                except Exception as e:
                    self._logger.error(
                        "change_handler_failed",
                        topic=topic.value,
                        handler=getattr(handler, "__name__", repr(handler)),
                        error=str(e),
                    )

    def subscriber_count(self, topic: ChangeTopic) -> int:
        return len(self._subscribers.get(topic, []))
