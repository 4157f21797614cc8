"""
Event notification for CANORA.

Curation operations publish events (``work.created``, ``work.promoted``,
``work.canonized``, ``signal.received``) after their transaction commits.
The ``Notifier`` fans each event out to subscribed handlers. Delivery is
fire-and-forget: a failing handler is logged and skipped, and never
propagates back into the operation that published the event. Transport,
signing and retry belong to the subscribers.
"""

from collections import defaultdict, deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional
import uuid

import structlog

from .curation.enums import EventType

logger = structlog.get_logger(__name__)


class EventStatus(Enum):
    """Event dispatch status."""
    PENDING = "pending"
    DELIVERED = "delivered"
    PARTIAL = "partial"
    FAILED = "failed"


class Event:
    """
    A named event with an opaque JSON body.

    The body is whatever the publishing operation chose to send; the
    notifier never inspects it.
    """

    def __init__(
        self,
        event_type: str,
        data: Dict[str, Any],
        source: str = "canora",
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type
        self.source = source
        self.data = data
        self.status = EventStatus.PENDING
        self.created_at = datetime.now(timezone.utc)
        self.delivered_to: List[str] = []
        self.errors: List[str] = []

    def to_dict(self) -> Dict[str, Any]:
        """Convert the event to a dictionary."""
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "data": self.data,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "delivered_to": list(self.delivered_to),
            "errors": list(self.errors),
        }

    def __str__(self) -> str:
        return f"Event(id={self.id[:8]}, type={self.type})"

    def __repr__(self) -> str:
        return self.__str__()


Handler = Callable[[Event], None]

KNOWN_EVENT_TYPES = frozenset(e.value for e in EventType)


class Notifier:
    """
    In-process fan-out of curation events.

    Handlers subscribe per event type, or to ``"*"`` for every event. A bounded
    history of recently published events is kept for inspection.
    """

    def __init__(self, history_size: int = 100):
        self._handlers: Dict[str, List[tuple]] = defaultdict(list)
        self.history: Deque[Event] = deque(maxlen=history_size)

    def subscribe(self, event_type: str, handler: Handler, name: Optional[str] = None) -> None:
        """Register ``handler`` for ``event_type`` (or ``"*"``)."""
        if event_type != "*" and event_type not in KNOWN_EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        handler_name = name or getattr(handler, "__name__", repr(handler))
        self._handlers[event_type].append((handler_name, handler))
        logger.debug("Subscribed handler", event_type=event_type, handler=handler_name)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type] = [
            (name, h) for name, h in self._handlers[event_type] if h != handler
        ]

    def publish(self, event_type: str, data: Dict[str, Any]) -> Event:
        """Dispatch an event to every interested handler.

        Never raises on handler failure.
        """
        event = Event(event_type.value if isinstance(event_type, EventType) else event_type, data)
        handlers = self._handlers.get(event.type, []) + self._handlers.get("*", [])

        for name, handler in handlers:
            try:
                handler(event)
                event.delivered_to.append(name)
            except Exception as e:
                event.errors.append(f"{name}: {e}")
                logger.exception(
                    "Event handler failed",
                    event_type=event.type,
                    event_id=event.id,
                    handler=name,
                )

        if not event.errors:
            event.status = EventStatus.DELIVERED
        elif event.delivered_to:
            event.status = EventStatus.PARTIAL
        else:
            event.status = EventStatus.FAILED

        self.history.append(event)
        logger.info(
            "Published event",
            event_type=event.type,
            event_id=event.id,
            handlers=len(handlers),
            status=event.status.value,
        )
        return event


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Process notifier used by the API and CLI, created on first use."""
    global _notifier
    if _notifier is None:
        from .config import get_settings

        _notifier = Notifier(history_size=get_settings().event_history_size)
    return _notifier


def publish_safely(notifier: Optional[Notifier], event_type: EventType, data: Dict[str, Any]) -> Optional[Event]:
    """Publish after a commit; a notifier fault must not undo committed work."""
    if notifier is None:
        return None
    try:
        return notifier.publish(event_type, data)
    except Exception:
        logger.exception("Notifier failed", event_type=event_type.value)
        return None
