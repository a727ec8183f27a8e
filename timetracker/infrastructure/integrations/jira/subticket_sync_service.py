"""
Subticket lists of projects.
Bookings on a project may use its main JIRA tickets, their subtasks and,
for epics, every issue of the epic.
"""

import logging
import re
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from timetracker.domain.models.base import BusinessRuleViolation, DomainException, EntityNotFoundError
from timetracker.infrastructure.db.models import ProjectModel, UserTicketSystemModel
from .exceptions import JiraApiException
from .http_client import JiraHttpClient
from .integration_service import ClientFactory, default_client_factory

logger = logging.getLogger(__name__)

EPIC_SEARCH_LIMIT = 100


def natural_sort_key(ticket: str):
    """WEB-2 before WEB-10, case does not matter."""
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", ticket)]


def get_subtickets(client: JiraHttpClient, ticket: str) -> List[str]:
    """Subtask keys of the ticket, for an epic also its issues and their subtasks."""
    if not client.does_resource_exist(f"issue/{ticket}"):
        return []

    fields = (client.get(f"issue/{ticket}") or {}).get("fields") or {}
    subtickets = [subtask["key"] for subtask in fields.get("subtasks") or [] if subtask.get("key")]

    issue_type = (fields.get("issuetype") or {}).get("name") or ""
    if issue_type.lower() == "epic":
        result = client.post("search/", {
            "jql": f'"Epic Link" = {ticket}',
            "fields": ["key", "subtasks"],
            "maxResults": EPIC_SEARCH_LIMIT,
        }) or {}
        for issue in result.get("issues") or []:
            if not issue.get("key"):
                continue
            subtickets.append(issue["key"])
            nested = (issue.get("fields") or {}).get("subtasks") or []
            subtickets.extend(subtask["key"] for subtask in nested if subtask.get("key"))

    return subtickets


class SubticketSyncService:
    """Stores the tickets bookable on a project in its `subtickets` column."""

    def __init__(self, session: Session, client_factory: Optional[ClientFactory] = None):
        self.session = session
        self.client_factory = client_factory or default_client_factory

    def _lead_token(self, project: ProjectModel) -> Optional[UserTicketSystemModel]:
        return self.session.query(UserTicketSystemModel).filter(
            UserTicketSystemModel.user_id == project.project_lead_id,
            UserTicketSystemModel.ticket_system_id == project.ticket_system_id,
        ).first()

    def sync_project_subtickets(self, project: Union[ProjectModel, int]) -> List[str]:
        """
        Fetch the subtickets of the project's main tickets and store them sorted.

        The project lead's access token is used, falling back to the login of
        the ticket system. Raises EntityNotFoundError for unknown projects and
        BusinessRuleViolation when the project can not be synced.
        """
        if not isinstance(project, ProjectModel):
            project_id = project
            project = self.session.get(ProjectModel, project_id)
            if project is None:
                raise EntityNotFoundError("Project", project_id, "Project does not exist")

        ticket_system = project.ticket_system
        if ticket_system is None:
            raise BusinessRuleViolation("No ticket system configured for project")

        if not project.jira_ticket:
            if project.subtickets:
                project.subtickets = ""
                self.session.flush()
            return []

        lead = project.project_lead
        if lead is None:
            raise BusinessRuleViolation(f"Project has no lead user: {project.name}")

        token = self._lead_token(project)
        if (token is None or not token.accesstoken) and not ticket_system.login:
            raise BusinessRuleViolation(
                f"Project user has no token for ticket system: {lead.username}@{project.name}"
            )

        subtickets = []
        with self.client_factory(ticket_system, token) as client:
            for main_ticket in (ticket.strip() for ticket in project.jira_ticket.split(",")):
                if not main_ticket:
                    continue
                # The main ticket is bookable as well
                subtickets.append(main_ticket)
                subtickets.extend(get_subtickets(client, main_ticket))

        subtickets.sort(key=natural_sort_key)
        project.subtickets = ",".join(subtickets)
        self.session.flush()

        logger.info(f"Project {project.id} has {len(subtickets)} subtickets")
        return subtickets

    def sync_all_projects(self) -> bool:
        """Sync every project with a ticket system, False when any of them failed."""
        projects = self.session.query(ProjectModel).filter(
            ProjectModel.ticket_system_id.isnot(None)
        ).order_by(ProjectModel.id).all()

        success = True
        for project in projects:
            try:
                self.sync_project_subtickets(project)
            except (DomainException, JiraApiException) as e:
                logger.warning(f"Subticket sync of project {project.id} failed: {e.message}")
                success = False
        return success
