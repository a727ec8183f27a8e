"""
Wiring of the entry event handlers.
"""

import logging

from timetracker.domain.events.base import EventHandler, get_event_dispatcher
from .entry_event_handlers import EntryCacheInvalidationHandler, JiraAutoSyncHandler

logger = logging.getLogger(__name__)

CACHE_EVENTS = ("EntryCreated", "EntryUpdated", "EntryDeleted", "EntrySynced")
JIRA_EVENTS = ("EntryCreated", "EntryUpdated", "EntryDeleted", "EntrySyncFailed")


def setup_event_handlers(cache_handler: EventHandler = None, jira_handler: EventHandler = None) -> None:
    """
    Register the cache and JIRA handlers, replacing whatever was registered before.
    The cache handler comes first so a synced entry never leaves stale summaries.
    """
    dispatcher = get_event_dispatcher()
    dispatcher.clear_handlers()

    subscriptions = (
        (cache_handler or EntryCacheInvalidationHandler(), CACHE_EVENTS),
        (jira_handler or JiraAutoSyncHandler(), JIRA_EVENTS),
    )
    for handler, event_types in subscriptions:
        for event_type in event_types:
            dispatcher.register_handler(event_type, handler)

    for event_type, handlers in dispatcher.get_registered_handlers().items():
        logger.info(f"{event_type} -> {', '.join(handlers)}")


def initialize_event_system() -> None:
    """Called once at application startup."""
    setup_event_handlers()
    logger.info("Entry event handlers registered")
