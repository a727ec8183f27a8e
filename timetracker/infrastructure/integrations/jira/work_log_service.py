"""
Work log synchronisation of single entries.
"""

import logging
from datetime import datetime

from .exceptions import JiraApiException, JiraApiInvalidResourceException
from .http_client import JiraHttpClient

logger = logging.getLogger(__name__)


def has_bookable_ticket(entry) -> bool:
    return bool(entry.ticket) and entry.ticket != "0"


class JiraWorkLogService:
    """Creates, updates and removes the JIRA work log that mirrors an entry."""

    def __init__(self, client: JiraHttpClient):
        self.client = client

    def _worklog_path(self, ticket: str, worklog_id: int) -> str:
        return f"issue/{ticket}/worklog/{worklog_id}"

    def does_ticket_exist(self, ticket: str) -> bool:
        return self.client.does_resource_exist(f"issue/{ticket}")

    def does_work_log_exist(self, ticket: str, worklog_id: int) -> bool:
        return self.client.does_resource_exist(self._worklog_path(ticket, worklog_id))

    def update_entry_work_log(self, entry) -> None:
        """Write the entry into the work log of its ticket."""
        if not has_bookable_ticket(entry):
            return

        ticket = entry.ticket
        if not self.does_ticket_exist(ticket):
            raise JiraApiInvalidResourceException(f"Jira ticket {ticket} does not exist.")

        if not entry.duration:
            self.delete_entry_work_log(entry)
            return

        if entry.worklog_id and not self.does_work_log_exist(ticket, entry.worklog_id):
            logger.info(f"Work log {entry.worklog_id} of entry {entry.id} vanished, creating a new one")
            entry.worklog_id = None

        payload = self.prepare_work_log_data(entry)
        if entry.worklog_id:
            work_log = self.client.put(self._worklog_path(ticket, entry.worklog_id), payload)
        else:
            work_log = self.client.post(f"issue/{ticket}/worklog", payload)

        if not work_log or "id" not in work_log:
            raise JiraApiException("Unexpected response from Jira when updating worklog", 500)

        entry.worklog_id = int(work_log["id"])
        entry.synced_to_ticketsystem = True

    def delete_entry_work_log(self, entry) -> None:
        """Remove the work log of the entry, a missing one counts as deleted."""
        if not has_bookable_ticket(entry) or not entry.worklog_id:
            return

        try:
            self.client.delete(self._worklog_path(entry.ticket, entry.worklog_id))
        except JiraApiInvalidResourceException:
            logger.debug(f"Work log {entry.worklog_id} of entry {entry.id} was already gone")

        entry.worklog_id = None
        entry.synced_to_ticketsystem = False

    def prepare_work_log_data(self, entry) -> dict:
        return {
            "comment": self.work_log_comment(entry),
            "started": self.work_log_start(entry),
            "timeSpentSeconds": int(entry.duration) * 60,
        }

    @staticmethod
    def work_log_comment(entry) -> str:
        parts = []
        customer = entry.effective_customer
        if customer is not None:
            parts.append(customer.name)
        if entry.project is not None:
            parts.append(entry.project.name)
        if entry.activity is not None:
            parts.append(entry.activity.name)
        parts.append(entry.description or "no description")
        return " | ".join(parts)

    @staticmethod
    def work_log_start(entry) -> str:
        """Start of the entry in JIRA's timestamp format, e.g. 2024-01-15T09:00:00.000+0000."""
        started = datetime.combine(entry.day, entry.start).astimezone()
        return started.strftime("%Y-%m-%dT%H:%M:%S.000%z")
