"""In-process fan-out of domain events to registered observers."""
import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from civic_engine.models.enums import EventKind
from civic_engine.models.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class NotificationDispatcher:
    """
    Observer list per event kind.

    Handlers run synchronously in registration order. A failing handler is
    logged and skipped; it never stops the remaining handlers or the
    operation that raised the event.
    """

    def __init__(self):
        self._handlers: Dict[EventKind, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        with self._lock:
            self._handlers[kind].append(handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> bool:
        with self._lock:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
        return False

    def handlers_for(self, kind: EventKind) -> List[Handler]:
        with self._lock:
            return list(self._handlers.get(kind, ()))

    def dispatch(self, event: DomainEvent) -> int:
        """Invoke every handler for the event's kind. Returns how many succeeded."""
        delivered = 0
        # iterate a copy so handlers may (un)subscribe while we dispatch
        for handler in self.handlers_for(event.kind):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %r failed for %s event (user %s)",
                    handler, event.kind.value, event.user_id
                )
                continue
            delivered += 1
        return delivered
