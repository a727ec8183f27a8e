"""
Domain events module.
"""

from .base import (
    DomainEvent, EventHandler, EventDispatcher, get_event_dispatcher, publish_event
)
from .entry_events import (
    EntryEvent, EntryCreated, EntryUpdated, EntryDeleted, EntrySynced, EntrySyncFailed
)

__all__ = [
    "DomainEvent",
    "EventHandler",
    "EventDispatcher",
    "get_event_dispatcher",
    "publish_event",
    "EntryEvent",
    "EntryCreated",
    "EntryUpdated",
    "EntryDeleted",
    "EntrySynced",
    "EntrySyncFailed",
]
