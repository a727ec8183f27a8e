"""
Project repository implementation using SQLAlchemy.
"""

import re
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, asc, func, or_
from sqlalchemy.orm import joinedload

from timetracker.domain.services.time_calculation_service import TimeCalculationService
from timetracker.infrastructure.db.models import (
    CustomerModel, EntryModel, PresetModel, ProjectModel, TeamModel, UserModel
)
from .base_repository import SQLAlchemyRepository

JIRA_PREFIX_PATTERN = re.compile(r"^([A-Z]+[A-Z0-9]*[, ]*)*$")


def project_to_array(project: ProjectModel) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "active": bool(project.active),
        "customer": project.customer_id,
        "global": bool(project.is_global),
        "jiraId": project.jira_id,
        "jiraTicket": project.jira_ticket,
        "subtickets": project.subtickets or "",
        "ticket_system": project.ticket_system_id,
        "estimation": project.estimation or 0,
        "estimationText": TimeCalculationService().minutes_to_readable(project.estimation or 0, False),
        "offer": project.offer or "",
        "billing": project.billing or 0,
        "cost_center": project.cost_center or "",
        "internalReference": project.internal_ref or "",
        "externalReference": project.external_ref or "",
        "project_lead": project.project_lead_id,
        "technical_lead": project.technical_lead_id,
        "invoice": project.invoice or "",
        "additionalInformationFromExternal": bool(project.additional_information_from_external),
        "internalJiraProjectKey": project.internal_jira_project_key or "",
        "internalJiraTicketSystem": project.internal_jira_ticket_system,
    }


class SQLAlchemyProjectRepository(SQLAlchemyRepository[ProjectModel]):
    """SQLAlchemy implementation of project repository."""

    model = ProjectModel
    entity_name = "Project"
    references = (
        (EntryModel, EntryModel.project_id),
        (PresetModel, PresetModel.project_id),
    )

    def find_by_name_and_customer(self, name: str, customer_id: Optional[int]) -> Optional[ProjectModel]:
        return self.session.query(ProjectModel).filter(
            and_(ProjectModel.name == name, ProjectModel.customer_id == customer_id)
        ).first()

    def find_by_customer(self, customer_id: int) -> List[ProjectModel]:
        return self.session.query(ProjectModel).filter(
            ProjectModel.customer_id == customer_id
        ).order_by(asc(ProjectModel.name)).all()

    def get_all_projects(self, customer_id: int = 0) -> List[Dict[str, Any]]:
        if customer_id > 0:
            projects = self.find_by_customer(customer_id)
        else:
            projects = self.session.query(ProjectModel).order_by(asc(ProjectModel.name)).all()
        return [{"project": project_to_array(project)} for project in projects]

    def find_by_user(self, user_id: int, customer_id: int = 0) -> List[ProjectModel]:
        """Active projects the user may book on: global ones and those of visible customers."""
        visible_customer = ProjectModel.customer.has(
            or_(
                CustomerModel.is_global.is_(True),
                CustomerModel.teams.any(TeamModel.users.any(UserModel.id == user_id)),
            )
        )
        query = self.session.query(ProjectModel).filter(
            and_(
                ProjectModel.active.is_(True),
                or_(ProjectModel.is_global.is_(True), visible_customer),
            )
        )
        if customer_id > 0:
            query = query.filter(
                or_(ProjectModel.customer_id == customer_id, ProjectModel.is_global.is_(True))
            )
        return query.order_by(asc(ProjectModel.name)).all()

    def get_projects_by_user(self, user_id: int, customer_id: int = 0) -> List[Dict[str, Any]]:
        return [{"project": project_to_array(project)} for project in self.find_by_user(user_id, customer_id)]

    def get_project_structure(self, user_id: int, customers: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
        """
        Projects grouped by customer id for the tracking combo boxes.
        Global projects show up below every customer; "all" lists the user's projects.
        """
        user_projects = self.find_by_user(user_id)
        global_projects = [project for project in user_projects if project.is_global]

        def short(project: ProjectModel) -> Dict[str, Any]:
            return {
                "id": project.id,
                "name": project.name,
                "jiraId": project.jira_id,
                "active": bool(project.active),
            }

        structure: Dict[str, List[Dict[str, Any]]] = {}
        for item in customers:
            customer_id = item["customer"]["id"]
            own = [short(p) for p in user_projects if p.customer_id == customer_id and not p.is_global]
            structure[str(customer_id)] = own + [short(p) for p in global_projects]

        structure["all"] = [
            dict(short(project), customer=project.customer_id, **{"global": bool(project.is_global)})
            for project in user_projects
        ]
        return structure

    def get_all_projects_for_admin(self) -> List[Dict[str, Any]]:
        projects = self.session.query(ProjectModel).options(
            joinedload(ProjectModel.customer)
        ).order_by(asc(ProjectModel.name)).all()
        return [
            {
                "id": project.id,
                "name": project.name,
                "customerId": project.customer.id if project.customer else 0,
                "customerName": project.customer.name if project.customer else "",
            }
            for project in projects
        ]

    def is_valid_jira_prefix(self, jira_id: str) -> bool:
        """Uppercase ticket keys, optionally separated by commas or blanks."""
        return bool(JIRA_PREFIX_PATTERN.match(jira_id or ""))

    def count_entries(self, project_id: int) -> int:
        return self.session.query(func.count(EntryModel.id)).filter(
            EntryModel.project_id == project_id
        ).scalar() or 0
