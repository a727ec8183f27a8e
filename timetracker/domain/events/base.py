"""
Base classes for domain events and event handling.
Entry changes are announced as events so caching and ticket system
synchronisation stay out of the tracking use cases.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class DomainEvent(ABC):
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_log_record(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "data": self._get_event_data(),
        }

    @abstractmethod
    def _get_event_data(self) -> Dict[str, Any]:
        """Payload written to the event log."""


class EventHandler(ABC):
    """Reacts to the events it was registered for."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        pass

    @abstractmethod
    def can_handle(self, event: DomainEvent) -> bool:
        pass


class EventDispatcher:
    """
    Hands events to the handlers registered for their type.

    Handlers run one after another in registration order, they share the
    database session of the request that raised the event. A failing
    handler is logged and the remaining handlers still run.
    """

    def __init__(self, max_log_size: int = 1000):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._event_log: Deque[Dict[str, Any]] = deque(maxlen=max_log_size)

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Registered {type(handler).__name__} for {event_type}")

    def clear_handlers(self) -> None:
        self._handlers.clear()

    def get_registered_handlers(self) -> Dict[str, List[str]]:
        """Handler class names per event type."""
        return {
            event_type: [type(handler).__name__ for handler in handlers]
            for event_type, handlers in self._handlers.items()
        }

    async def dispatch(self, event: DomainEvent) -> None:
        self._event_log.append(event.to_log_record())

        handlers = [h for h in self._handlers.get(event.event_type, []) if h.can_handle(event)]
        if not handlers:
            logger.debug(f"No handlers for {event.event_type}")
            return

        logger.info(f"Dispatching {event.event_type} ({event.event_id}) to {len(handlers)} handler(s)")
        for handler in handlers:
            try:
                await handler.handle(event)
            except Exception as e:
                logger.error(f"{type(handler).__name__} failed on {event.event_type}: {str(e)}")

    def get_event_log(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Logged events, newest first."""
        events = list(reversed(self._event_log))
        return events[:limit] if limit else events

    def clear_event_log(self) -> None:
        self._event_log.clear()


_event_dispatcher: Optional[EventDispatcher] = None


def get_event_dispatcher() -> EventDispatcher:
    global _event_dispatcher
    if _event_dispatcher is None:
        _event_dispatcher = EventDispatcher()
    return _event_dispatcher


async def publish_event(event: DomainEvent) -> None:
    await get_event_dispatcher().dispatch(event)
