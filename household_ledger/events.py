"""
"Data changed" notifications.

Editors announce every successful write so read-only views (dashboard,
lists) can refresh. Delivery is synchronous and best effort: a view that
re-reads the store is always correct, with or without the signal.
"""

from collections import defaultdict
from typing import Callable, Optional

import structlog

TRANSACTION_UPDATED = "transaction-updated"
PERSONAL_FUND_UPDATED = "personal-fund-updated"

Listener = Callable[[str], None]

logger = structlog.get_logger("household_ledger.events")


class ChangeNotifier:
    """Minimal observer registry keyed by event name."""

    def __init__(self):
        self._listeners: dict[Optional[str], list[Listener]] = defaultdict(list)

    def subscribe(self, listener: Listener, event: Optional[str] = None) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with the event name
            event: Only deliver this event; None means every event

        Returns:
            A function that removes the listener again
        """
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def notify(self, event: str) -> int:
        """
        Deliver an event to its listeners.

        A failing listener is logged and skipped; it never undoes the
        write that triggered the event.

        Returns:
            Number of listeners that handled the event without error
        """
        delivered = 0
        for listener in [*self._listeners[event], *self._listeners[None]]:
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.warning("change_listener_failed", change_event=event, error=str(e))
        return delivered
