"""
Entry level JIRA integration used by the event handlers and the admin sync.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from timetracker.config import settings
from timetracker.domain.models.enums import TicketSystemType
from timetracker.infrastructure.db.models import (
    EntryModel, TicketSystemModel, UserTicketSystemModel
)
from .exceptions import JiraApiException
from .http_client import JiraHttpClient
from .work_log_service import JiraWorkLogService, has_bookable_ticket

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TicketSystemModel, Optional[UserTicketSystemModel]], JiraHttpClient]


def default_client_factory(ticket_system: TicketSystemModel, token: Optional[UserTicketSystemModel]) -> JiraHttpClient:
    return JiraHttpClient(
        ticket_system,
        access_token=token.accesstoken if token is not None else None,
        timeout=settings.jira_timeout,
    )


class JiraIntegrationService:
    """Decides whether an entry is booked into JIRA and does so."""

    def __init__(self, session: Session, client_factory: Optional[ClientFactory] = None):
        self.session = session
        self.client_factory = client_factory or default_client_factory

    def get_ticket_system(self, project) -> Optional[TicketSystemModel]:
        """The internal JIRA system wins over the project's own one when configured."""
        if project is None:
            return None
        if project.has_internal_jira_project_key:
            internal = self.session.get(TicketSystemModel, project.internal_jira_ticket_system)
            if internal is not None:
                return internal
        return project.ticket_system

    @staticmethod
    def should_sync_with_jira(ticket_system: Optional[TicketSystemModel], entry) -> bool:
        if ticket_system is None:
            return False
        if not ticket_system.book_time or TicketSystemType(ticket_system.type) != TicketSystemType.JIRA:
            return False
        if not has_bookable_ticket(entry):
            return False
        if entry.start is None or entry.end is None:
            return False
        return entry.start < entry.end

    def _user_token(self, user_id: int, ticket_system: TicketSystemModel) -> Optional[UserTicketSystemModel]:
        return self.session.query(UserTicketSystemModel).filter(
            UserTicketSystemModel.user_id == user_id,
            UserTicketSystemModel.ticket_system_id == ticket_system.id,
        ).first()

    def _work_log_service(self, entry, ticket_system: TicketSystemModel) -> Optional[JiraWorkLogService]:
        token = self._user_token(entry.user_id, ticket_system)
        if token is not None and token.avoidconnection:
            logger.debug(f"User {entry.user_id} opted out of {ticket_system.name}")
            return None
        return JiraWorkLogService(self.client_factory(ticket_system, token))

    def save_worklog(self, entry) -> bool:
        """Create or update the work log of the entry. Returns False when it is not synced."""
        if entry.project is None:
            logger.warning(f"Entry {entry.id} has no project, not syncing")
            return False

        ticket_system = self.get_ticket_system(entry.project)
        if not self.should_sync_with_jira(ticket_system, entry):
            logger.debug(f"Entry {entry.id} should not sync with JIRA")
            return False

        service = self._work_log_service(entry, ticket_system)
        if service is None:
            return False

        try:
            with service.client:
                service.update_entry_work_log(entry)
        except JiraApiException as e:
            logger.error(f"JIRA sync of entry {entry.id} failed: {e.message}")
            raise

        self.session.flush()
        logger.info(f"JIRA worklog of entry {entry.id} synced")
        return True

    def delete_worklog(self, entry) -> bool:
        if not entry.worklog_id:
            logger.info(f"Entry {entry.id} has no worklog to delete")
            return False

        ticket_system = self.get_ticket_system(entry.project)
        if ticket_system is None:
            raise JiraApiException("Project has no ticket system configured")

        service = self._work_log_service(entry, ticket_system)
        if service is None:
            return False

        try:
            with service.client:
                service.delete_entry_work_log(entry)
        except JiraApiException as e:
            logger.error(f"JIRA worklog deletion of entry {entry.id} failed: {e.message}")
            raise

        logger.info(f"JIRA worklog of entry {entry.id} deleted")
        return True

    def batch_sync_work_logs(self, entries: Iterable) -> Dict[str, int]:
        """Sync many entries, one failing entry does not stop the others."""
        results = {"success": 0, "failed": 0, "skipped": 0}
        for entry in entries:
            try:
                if self.save_worklog(entry):
                    results["success"] += 1
                else:
                    results["skipped"] += 1
            except JiraApiException as e:
                results["failed"] += 1
                logger.error(f"Batch sync failed for entry {entry.id}: {e.message}")
        return results

    def get_entries_needing_sync(
        self,
        user_id: Optional[int] = None,
        ticket_system_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[EntryModel]:
        query = self.session.query(EntryModel).filter(EntryModel.synced_to_ticketsystem.is_(False))
        if user_id:
            query = query.filter(EntryModel.user_id == user_id)
        entries = query.order_by(EntryModel.day.desc(), EntryModel.start.desc()).all()

        result = []
        for entry in entries:
            ticket_system = self.get_ticket_system(entry.project)
            if ticket_system_id and (ticket_system is None or ticket_system.id != ticket_system_id):
                continue
            if self.should_sync_with_jira(ticket_system, entry):
                result.append(entry)
                if limit and len(result) >= limit:
                    break
        return result
