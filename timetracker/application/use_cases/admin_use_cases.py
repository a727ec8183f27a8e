"""
Admin use cases for the application layer.
Master data maintenance of the administration frontend, restricted to project leads.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from timetracker.application.dto.admin_dto import (
    ActivitySaveRequestDTO,
    ContractSaveRequestDTO,
    CustomerSaveRequestDTO,
    PresetSaveRequestDTO,
    ProjectSaveRequestDTO,
    TeamSaveRequestDTO,
    TicketSystemSaveRequestDTO,
    UserSaveRequestDTO,
)
from timetracker.domain.models.base import DomainException, DuplicateEntityError, ValidationError
from timetracker.domain.services.time_calculation_service import TimeCalculationService
from timetracker.infrastructure.db.models import (
    ActivityModel,
    ContractModel,
    CustomerModel,
    PresetModel,
    ProjectModel,
    TeamModel,
    TicketSystemModel,
    UserModel,
)
from timetracker.infrastructure.integrations.jira import (
    JiraApiException, JiraIntegrationService, SubticketSyncService
)
from timetracker.infrastructure.repositories import (
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyEntryRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
    SQLAlchemyRepository,
    SQLAlchemyTeamRepository,
    SQLAlchemyTicketSystemRepository,
    SQLAlchemyUserRepository,
)
from timetracker.infrastructure.repositories.preset_repository import preset_to_array
from timetracker.infrastructure.repositories.ticket_system_repository import ticket_system_to_array
from .base_use_case import CommandUseCase

logger = logging.getLogger(__name__)


def _min_length(value: str, length: int, message: str, field: str = "name") -> None:
    if len(value or "") < length:
        raise ValidationError(message, field=field)


def user_type_value(user_type) -> str:
    return user_type.value if hasattr(user_type, "value") else str(user_type)


class AdminSaveUseCase(CommandUseCase):
    """Loads the record to update or starts a new one."""

    model = None

    def __init__(self, repository: SQLAlchemyRepository):
        super().__init__()
        self.repository = repository

    def _load_or_create(self, record_id: int):
        if record_id:
            return self._require(
                self.repository.find_by_id(record_id), self.repository.entity_name, record_id
            )
        return self.model()

    def _ensure_unique_name(self, record, name: str, message: str) -> None:
        existing = self.repository.find_by_name(name)
        if existing is not None and existing.id != record.id:
            raise DuplicateEntityError(self.repository.entity_name, "name", name, message)


class SaveCustomerUseCase(AdminSaveUseCase):
    """Create or update a customer."""

    model = CustomerModel

    def __init__(self, repository: SQLAlchemyCustomerRepository, team_repository: SQLAlchemyTeamRepository):
        super().__init__(repository)
        self.team_repository = team_repository

    async def execute(self, request: CustomerSaveRequestDTO) -> List[Any]:
        customer = self._load_or_create(request.id)

        _min_length(request.name, 3, "Please provide a valid customer name with at least 3 letters.")
        self._ensure_unique_name(customer, request.name, "The customer name provided already exists.")

        teams = []
        missing = []
        for team_id in request.teams:
            team = self.team_repository.find_by_id(team_id)
            if team is None:
                missing.append(str(team_id))
            else:
                teams.append(team)
        if missing:
            raise ValidationError(
                f"Could not find team(s) with ID(s): {', '.join(missing)}.", field="teams"
            )

        if not teams and not request.is_global:
            raise ValidationError(
                "Every customer must belong to at least one team if it is not global.", field="teams"
            )

        customer.name = request.name
        customer.active = request.active
        customer.is_global = request.is_global
        customer.teams = teams
        self.repository.save(customer)

        logger.info(f"Customer {customer.id} '{customer.name}' saved")
        return [customer.id, customer.name, bool(customer.active), bool(customer.is_global), [t.id for t in teams]]


class SaveProjectUseCase(AdminSaveUseCase):
    """Create or update a project."""

    model = ProjectModel

    def __init__(
        self,
        repository: SQLAlchemyProjectRepository,
        customer_repository: SQLAlchemyCustomerRepository,
        user_repository: SQLAlchemyUserRepository,
        ticket_system_repository: SQLAlchemyTicketSystemRepository,
        subticket_sync: Optional[SubticketSyncService] = None,
    ):
        super().__init__(repository)
        self.customer_repository = customer_repository
        self.user_repository = user_repository
        self.ticket_system_repository = ticket_system_repository
        self.subticket_sync = subticket_sync
        self.time_calculation = TimeCalculationService()

    async def execute(self, request: ProjectSaveRequestDTO) -> List[Any]:
        project = self._load_or_create(request.id)

        _min_length(request.name, 3, "Please provide a valid project name with at least 3 letters.")

        customer = project.customer
        if request.customer is not None:
            customer = self.customer_repository.find_by_id(request.customer)
            if customer is None:
                raise ValidationError("Please choose a customer.", field="customer")
        if customer is None:
            raise ValidationError("Please choose a customer.", field="customer")

        existing = self.repository.find_by_name_and_customer(request.name, customer.id)
        if existing is not None and existing.id != project.id:
            raise DuplicateEntityError(
                "Project", "name", request.name, "The project name provided already exists."
            )

        if request.jira_id and not self.repository.is_valid_jira_prefix(request.jira_id):
            raise ValidationError(
                "Please provide a valid ticket prefix with only capital letters.", field="jiraId"
            )

        project.name = request.name
        project.customer = customer
        project.jira_id = request.jira_id or None
        project.jira_ticket = request.jira_ticket or None
        project.active = request.active
        project.is_global = request.is_global
        project.estimation = self.time_calculation.readable_to_full_minutes(request.estimation)
        project.billing = int(request.billing)
        project.cost_center = request.cost_center
        project.offer = request.offer
        project.internal_ref = request.internal_ref
        project.external_ref = request.external_ref
        project.invoice = request.invoice
        project.project_lead = self.user_repository.find_by_id(request.project_lead)
        project.technical_lead = self.user_repository.find_by_id(request.technical_lead)
        project.ticket_system = self.ticket_system_repository.find_by_id(request.ticket_system)
        project.additional_information_from_external = request.additional_information_from_external
        project.internal_jira_ticket_system = request.internal_jira_ticket_system
        project.internal_jira_project_key = request.internal_jira_project_key or None
        self.repository.save(project)
        logger.info(f"Project {project.id} '{project.name}' saved for customer {customer.id}")

        if project.ticket_system is not None and self.subticket_sync is not None:
            self._sync_subtickets(project)

        return [project.id, project.name, customer.id, project.jira_id]

    def _sync_subtickets(self, project: ProjectModel) -> None:
        """A failing sync keeps the saved project."""
        try:
            self.subticket_sync.sync_project_subtickets(project)
        except (DomainException, JiraApiException) as e:
            logger.warning(f"Subtickets of project {project.id} not synced: {e.message}")


class SaveActivityUseCase(AdminSaveUseCase):
    """Create or update an activity."""

    model = ActivityModel

    def __init__(self, repository: SQLAlchemyActivityRepository):
        super().__init__(repository)

    async def execute(self, request: ActivitySaveRequestDTO) -> List[Any]:
        activity = self._load_or_create(request.id)

        _min_length(request.name, 1, "Please provide a valid activity name.")
        self._ensure_unique_name(activity, request.name, "The activity name provided already exists.")

        activity.name = request.name
        activity.needs_ticket = request.needs_ticket
        activity.factor = request.factor
        self.repository.save(activity)

        return [activity.id, activity.name, bool(activity.needs_ticket), float(activity.factor)]


class SaveTeamUseCase(AdminSaveUseCase):
    """Create or update a team."""

    model = TeamModel

    def __init__(self, repository: SQLAlchemyTeamRepository, user_repository: SQLAlchemyUserRepository):
        super().__init__(repository)
        self.user_repository = user_repository

    async def execute(self, request: TeamSaveRequestDTO) -> List[Any]:
        team = self._load_or_create(request.id)

        _min_length(request.name, 3, "Please provide a valid team name with at least 3 letters.")
        self._ensure_unique_name(team, request.name, "The team name provided already exists.")

        if request.lead_user_id is None:
            raise ValidationError("Please provide a lead user for the team.", field="lead_user_id")
        lead_user = self.user_repository.find_by_id(request.lead_user_id)
        if lead_user is None:
            raise ValidationError("Please provide a valid user as team leader.", field="lead_user_id")

        team.name = request.name
        team.lead_user = lead_user
        self.repository.save(team)

        return [team.id, team.name, lead_user.id]


class SaveUserUseCase(AdminSaveUseCase):
    """Create or update a user and its team memberships."""

    model = UserModel

    def __init__(self, repository: SQLAlchemyUserRepository, team_repository: SQLAlchemyTeamRepository):
        super().__init__(repository)
        self.team_repository = team_repository

    async def execute(self, request: UserSaveRequestDTO) -> List[Any]:
        user = self._load_or_create(request.id)

        _min_length(
            request.username, 3, "Please provide a valid user name with at least 3 letters.", "username"
        )
        if len(request.abbr) != 3:
            raise ValidationError(
                "Please provide a valid user name abbreviation with 3 letters.", field="abbr"
            )

        existing = self.repository.find_by_username(request.username)
        if existing is not None and existing.id != user.id:
            raise DuplicateEntityError(
                "User", "username", request.username, "The user name provided already exists."
            )
        existing = self.repository.find_by_abbr(request.abbr)
        if existing is not None and existing.id != user.id:
            raise DuplicateEntityError(
                "User", "abbr", request.abbr, "The user name abreviation provided already exists."
            )

        if not request.teams:
            raise ValidationError("Every user must belong to at least one team", field="teams")

        teams = []
        for team_id in request.teams:
            team = self.team_repository.find_by_id(team_id)
            if team is None:
                raise ValidationError(f"Could not find team with ID {team_id}.", field="teams")
            teams.append(team)

        user.username = request.username
        user.abbr = request.abbr
        user.type = request.type
        user.locale = request.locale
        user.teams = teams
        self.repository.save(user)

        logger.info(f"User {user.id} '{user.username}' saved")
        return [user.id, user.username, user.abbr, user_type_value(user.type)]


class SaveContractUseCase(AdminSaveUseCase):
    """
    Create or update a contract.

    A new contract closes the user's open ended contract the day before it
    starts. Contracts that would overlap the new one are rejected.
    """

    model = ContractModel

    def __init__(self, repository: SQLAlchemyContractRepository, user_repository: SQLAlchemyUserRepository):
        super().__init__(repository)
        self.user_repository = user_repository

    async def execute(self, request: ContractSaveRequestDTO) -> List[Any]:
        contract = self._load_or_create(request.id)

        user = self.user_repository.find_by_id(request.user_id) if request.user_id else None
        if user is None:
            raise ValidationError("Please enter a valid user.", field="user_id")
        if request.start is None:
            raise ValidationError("Please enter a valid contract start.", field="start")

        if request.id == 0:
            self._close_open_contract(user, request)

        contract.user = user
        contract.start = request.start
        contract.end = request.end
        for weekday in range(7):
            setattr(contract, f"hours_{weekday}", getattr(request, f"hours_{weekday}"))
        self.repository.save(contract)

        return [contract.id]

    def _close_open_contract(self, user: UserModel, request: ContractSaveRequestDTO) -> None:
        contracts = self.repository.find_by_user(user.id)
        new_start, new_end = request.start, request.end

        for contract in contracts:
            starts_inside = contract.start >= new_start and (new_end is None or contract.start <= new_end)
            if starts_inside:
                raise ValidationError(
                    "There is already an ongoing contract with a start date in the future "
                    "that overlaps with the new contract."
                )
            if contract.end is not None and contract.start <= new_start <= contract.end:
                raise ValidationError(
                    "There is already an ongoing contract with a closed end date in the future."
                )

        open_contracts = [contract for contract in contracts if contract.end is None]
        if len(open_contracts) > 1:
            raise ValidationError("There is more than one open-ended contract for the user.")

        if open_contracts and open_contracts[0].start <= new_start:
            open_contracts[0].end = new_start - timedelta(days=1)
            self.repository.save(open_contracts[0])
            logger.info(f"Closed contract {open_contracts[0].id} at {open_contracts[0].end}")


class SavePresetUseCase(AdminSaveUseCase):
    """Create or update a booking preset."""

    model = PresetModel

    def __init__(
        self,
        repository: SQLAlchemyPresetRepository,
        customer_repository: SQLAlchemyCustomerRepository,
        project_repository: SQLAlchemyProjectRepository,
        activity_repository: SQLAlchemyActivityRepository,
    ):
        super().__init__(repository)
        self.customer_repository = customer_repository
        self.project_repository = project_repository
        self.activity_repository = activity_repository

    async def execute(self, request: PresetSaveRequestDTO) -> Dict[str, Any]:
        preset = self._load_or_create(request.id)

        _min_length(request.name, 3, "Please provide a valid preset name with at least 3 letters.")

        customer = self.customer_repository.find_by_id(request.customer)
        project = self.project_repository.find_by_id(request.project)
        activity = self.activity_repository.find_by_id(request.activity)
        if customer is None or project is None or activity is None:
            raise ValidationError("Please choose a customer, a project and an activity.")

        preset.name = request.name
        preset.customer = customer
        preset.project = project
        preset.activity = activity
        preset.description = request.description
        self.repository.save(preset)

        return preset_to_array(preset)


class SaveTicketSystemUseCase(AdminSaveUseCase):
    """Create or update a ticket system."""

    model = TicketSystemModel

    def __init__(self, repository: SQLAlchemyTicketSystemRepository):
        super().__init__(repository)

    async def execute(self, request: TicketSystemSaveRequestDTO) -> Dict[str, Any]:
        ticket_system = self._load_or_create(request.id)

        _min_length(request.name, 3, "Please provide a valid ticket system name with at least 3 letters.")
        self._ensure_unique_name(
            ticket_system, request.name, "The ticket system name provided already exists."
        )

        ticket_system.name = request.name
        ticket_system.type = request.type
        ticket_system.book_time = request.book_time
        ticket_system.url = request.url
        ticket_system.ticketurl = request.ticket_url
        ticket_system.login = request.login
        # Empty secrets keep the stored ones
        if request.password:
            ticket_system.password = request.password
        if request.private_key:
            ticket_system.private_key = request.private_key
        ticket_system.public_key = request.public_key
        ticket_system.oauth_consumer_key = request.oauth_consumer_key
        if request.oauth_consumer_secret:
            ticket_system.oauth_consumer_secret = request.oauth_consumer_secret
        self.repository.save(ticket_system)

        return ticket_system_to_array(ticket_system)


class DeleteRecordUseCase(CommandUseCase):
    """Delete a master data record that nothing refers to anymore."""

    def __init__(self, repository: SQLAlchemyRepository):
        super().__init__()
        self.repository = repository

    async def execute(self, record_id: Optional[int]) -> Dict[str, Any]:
        record = self.repository.find_by_id(record_id) if record_id else None
        if record is None:
            raise ValidationError("Dataset could not be removed.")

        self.repository.delete(record)
        logger.info(f"{self.repository.entity_name} {record_id} deleted")
        return {"success": True}


class SyncJiraEntriesUseCase(CommandUseCase):
    """Push the pending work logs of a user to every ticket system booking time."""

    def __init__(
        self,
        integration_service: JiraIntegrationService,
        ticket_system_repository: SQLAlchemyTicketSystemRepository,
        entry_repository: SQLAlchemyEntryRepository,
    ):
        super().__init__()
        self.integration_service = integration_service
        self.ticket_system_repository = ticket_system_repository
        self.entry_repository = entry_repository

    async def execute(self, user: UserModel, limit: int = 50) -> Dict[str, Any]:
        """At most `limit` entries per ticket system, 0 syncs all of them."""
        self._start()
        ticket_systems = self.ticket_system_repository.find_booking_systems()
        results = {}
        for ticket_system in ticket_systems:
            entries = self.entry_repository.find_by_user_and_ticket_system_to_sync(
                user.id, ticket_system.id, limit
            )
            results[ticket_system.name] = self.integration_service.batch_sync_work_logs(entries)
            logger.info(f"JIRA sync of {ticket_system.name} for user {user.id}: {results[ticket_system.name]}")

        self._finish()
        return {"success": bool(ticket_systems), "results": results}


__all__ = [
    "SaveCustomerUseCase",
    "SaveProjectUseCase",
    "SaveActivityUseCase",
    "SaveTeamUseCase",
    "SaveUserUseCase",
    "SaveContractUseCase",
    "SavePresetUseCase",
    "SaveTicketSystemUseCase",
    "DeleteRecordUseCase",
    "SyncJiraEntriesUseCase",
]
