"""
Infrastructure event handlers.
"""

from .entry_event_handlers import (
    EntryCacheInvalidationHandler, JiraAutoSyncHandler, should_auto_sync
)
from .event_setup import setup_event_handlers, initialize_event_system

__all__ = [
    "EntryCacheInvalidationHandler",
    "JiraAutoSyncHandler",
    "should_auto_sync",
    "setup_event_handlers",
    "initialize_event_system",
]
