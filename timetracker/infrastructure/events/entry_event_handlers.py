"""
Event handlers reacting to entry changes.
Keeps the query cache fresh and mirrors entries into JIRA work logs.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session, object_session

from timetracker.domain.events.base import DomainEvent, EventHandler, publish_event
from timetracker.domain.events.entry_events import (
    EntryCreated, EntryDeleted, EntryEvent, EntrySynced, EntrySyncFailed, EntryUpdated
)
from timetracker.domain.models.enums import TicketSystemType
from timetracker.infrastructure.cache.query_cache import QueryCacheService, get_query_cache
from timetracker.infrastructure.integrations.jira.integration_service import JiraIntegrationService


logger = logging.getLogger(__name__)

ENTRY_TAG = "Entry"
JIRA_SYNC_TAG = "jira_sync"


def should_auto_sync(entry) -> bool:
    """Only entries on a time booking JIRA project with a real ticket are pushed."""
    project = getattr(entry, "project", None)
    if project is None:
        return False

    ticket_system = project.ticket_system
    if ticket_system is None:
        return False

    if TicketSystemType(ticket_system.type) != TicketSystemType.JIRA:
        return False

    if not ticket_system.book_time:
        return False

    ticket = entry.ticket
    return isinstance(ticket, str) and ticket != "" and ticket != "0"


class EntryCacheInvalidationHandler(EventHandler):
    """Drops cached summaries, statistics and grids after entry changes."""

    def __init__(self, cache: Optional[QueryCacheService] = None):
        self._cache = cache

    @property
    def cache(self) -> QueryCacheService:
        return self._cache or get_query_cache()

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, EntryEvent)

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, (EntryCreated, EntryUpdated, EntryDeleted)):
            removed = self.cache.invalidate_entity(ENTRY_TAG, event.user_id)
            logger.debug(f"Invalidated {removed} cached queries after {event.event_type}")
        elif isinstance(event, EntrySynced):
            self.cache.invalidate_tag(JIRA_SYNC_TAG)


class JiraAutoSyncHandler(EventHandler):
    """Pushes booked time of JIRA projects into the ticket's work log."""

    def __init__(self, integration_factory: Optional[Callable[[Session], JiraIntegrationService]] = None):
        self.integration_factory = integration_factory or JiraIntegrationService

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, (EntryCreated, EntryUpdated, EntryDeleted, EntrySyncFailed))

    def _integration(self, entry) -> JiraIntegrationService:
        return self.integration_factory(object_session(entry))

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, EntryCreated):
            await self._handle_created(event)
        elif isinstance(event, EntryUpdated):
            self._handle_updated(event)
        elif isinstance(event, EntryDeleted):
            self._handle_deleted(event)
        elif isinstance(event, EntrySyncFailed):
            logger.error(f"JIRA sync of entry {event.entry_id} failed: {event.error}")

    async def _handle_created(self, event: EntryCreated) -> None:
        entry = event.entry
        if not should_auto_sync(entry):
            return

        try:
            synced = self._integration(entry).save_worklog(entry)
        except Exception as e:
            logger.error(f"Auto-sync failed for entry {event.entry_id}: {str(e)}")
            await publish_event(EntrySyncFailed(entry=entry, user_id=event.user_id, error=str(e)))
            return

        if synced:
            await publish_event(EntrySynced(entry=entry, user_id=event.user_id))

    def _handle_updated(self, event: EntryUpdated) -> None:
        entry = event.entry
        if not entry.synced_to_ticketsystem or not entry.worklog_id:
            return

        try:
            self._integration(entry).save_worklog(entry)
        except Exception as e:
            logger.warning(f"Updating the worklog of entry {event.entry_id} failed: {str(e)}")

    def _handle_deleted(self, event: EntryDeleted) -> None:
        entry = event.entry
        if not entry.synced_to_ticketsystem or not entry.worklog_id:
            return

        try:
            self._integration(entry).delete_worklog(entry)
        except Exception as e:
            logger.warning(f"Deleting the worklog of entry {event.entry_id} failed: {str(e)}")
