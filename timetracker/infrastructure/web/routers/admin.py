"""
Admin router.
Master data maintenance, restricted to project leads and admins.
"""

import logging
from typing import Annotated, Any, Callable, Dict

from fastapi import APIRouter, Depends, Query

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
from timetracker.application.dto.base_dto import IdRequestDTO
from timetracker.application.use_cases.admin_use_cases import (
    DeleteRecordUseCase,
    SaveActivityUseCase,
    SaveContractUseCase,
    SaveCustomerUseCase,
    SavePresetUseCase,
    SaveProjectUseCase,
    SaveTeamUseCase,
    SaveTicketSystemUseCase,
    SaveUserUseCase,
    SyncJiraEntriesUseCase,
)
from timetracker.infrastructure.auth import ProjectLead
from timetracker.infrastructure.integrations.jira import JiraIntegrationService, SubticketSyncService
from timetracker.infrastructure.repositories import (
    OptimizedEntryRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
    SQLAlchemyRepository,
    SQLAlchemyTeamRepository,
    SQLAlchemyTicketSystemRepository,
    SQLAlchemyUserRepository,
)
from timetracker.infrastructure.web.dependencies import (
    get_activity_repository,
    get_contract_repository,
    get_customer_repository,
    get_entry_repository,
    get_jira_integration_service,
    get_preset_repository,
    get_project_repository,
    get_subticket_sync_service,
    get_team_repository,
    get_ticket_system_repository,
    get_user_repository,
    request_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter()

Payload = Annotated[Dict[str, Any], Depends(request_payload)]
Customers = Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)]
Projects = Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)]
Activities = Annotated[SQLAlchemyActivityRepository, Depends(get_activity_repository)]
Users = Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)]
Teams = Annotated[SQLAlchemyTeamRepository, Depends(get_team_repository)]
Contracts = Annotated[SQLAlchemyContractRepository, Depends(get_contract_repository)]
Presets = Annotated[SQLAlchemyPresetRepository, Depends(get_preset_repository)]
TicketSystems = Annotated[SQLAlchemyTicketSystemRepository, Depends(get_ticket_system_repository)]
SubticketSync = Annotated[SubticketSyncService, Depends(get_subticket_sync_service)]


@router.post("/customer/save")
async def save_customer(user: ProjectLead, payload: Payload, repository: Customers, teams: Teams):
    """
    Create or update a customer.

    Returns [id, name, active, global, teams].
    """
    request = CustomerSaveRequestDTO.model_validate(payload)
    return await SaveCustomerUseCase(repository, teams).execute(request)


@router.post("/project/save")
async def save_project(
    user: ProjectLead,
    payload: Payload,
    repository: Projects,
    customers: Customers,
    users: Users,
    ticket_systems: TicketSystems,
    subticket_sync: SubticketSync,
):
    """
    Create or update a project, then refresh its subtickets.

    Returns [id, name, customer_id, jiraId].
    """
    request = ProjectSaveRequestDTO.model_validate(payload)
    use_case = SaveProjectUseCase(repository, customers, users, ticket_systems, subticket_sync)
    return await use_case.execute(request)


@router.post("/activity/save")
async def save_activity(user: ProjectLead, payload: Payload, repository: Activities):
    """Returns [id, name, needsTicket, factor]."""
    request = ActivitySaveRequestDTO.model_validate(payload)
    return await SaveActivityUseCase(repository).execute(request)


@router.post("/team/save")
async def save_team(user: ProjectLead, payload: Payload, repository: Teams, users: Users):
    request = TeamSaveRequestDTO.model_validate(payload)
    return await SaveTeamUseCase(repository, users).execute(request)


@router.post("/user/save")
async def save_user(user: ProjectLead, payload: Payload, repository: Users, teams: Teams):
    request = UserSaveRequestDTO.model_validate(payload)
    return await SaveUserUseCase(repository, teams).execute(request)


@router.post("/contract/save")
async def save_contract(user: ProjectLead, payload: Payload, repository: Contracts, users: Users):
    """Create or update a contract, a new one closes the open ended contract of the user."""
    request = ContractSaveRequestDTO.model_validate(payload)
    return await SaveContractUseCase(repository, users).execute(request)


@router.post("/preset/save")
async def save_preset(
    user: ProjectLead,
    payload: Payload,
    repository: Presets,
    customers: Customers,
    projects: Projects,
    activities: Activities,
):
    request = PresetSaveRequestDTO.model_validate(payload)
    return await SavePresetUseCase(repository, customers, projects, activities).execute(request)


@router.post("/ticketsystem/save")
async def save_ticket_system(user: ProjectLead, payload: Payload, repository: TicketSystems):
    request = TicketSystemSaveRequestDTO.model_validate(payload)
    return await SaveTicketSystemUseCase(repository).execute(request)


def _delete_route(path: str, dependency: Callable[..., SQLAlchemyRepository]) -> None:
    async def delete_record(
        user: ProjectLead,
        payload: Payload,
        repository: Annotated[SQLAlchemyRepository, Depends(dependency)],
    ):
        request = IdRequestDTO.model_validate(payload)
        return await DeleteRecordUseCase(repository).execute(request.id)

    delete_record.__name__ = f"delete_{path.strip('/').split('/')[0]}"
    delete_record.__doc__ = "Delete a record nothing refers to, returns {success: true}."
    router.add_api_route(path, delete_record, methods=["POST"])


_delete_route("/customer/delete", get_customer_repository)
_delete_route("/project/delete", get_project_repository)
_delete_route("/activity/delete", get_activity_repository)
_delete_route("/team/delete", get_team_repository)
_delete_route("/user/delete", get_user_repository)
_delete_route("/contract/delete", get_contract_repository)
_delete_route("/preset/delete", get_preset_repository)
_delete_route("/ticketsystem/delete", get_ticket_system_repository)


@router.api_route("/syncentries/jira", methods=["GET", "POST"])
async def sync_jira_entries(
    user: ProjectLead,
    integration_service: Annotated[JiraIntegrationService, Depends(get_jira_integration_service)],
    ticket_systems: TicketSystems,
    entries: Annotated[OptimizedEntryRepository, Depends(get_entry_repository)],
    limit: int = Query(50, ge=0, description="Entries per ticket system, 0 for all"),
):
    """Push the pending work logs to every ticket system booking time."""
    use_case = SyncJiraEntriesUseCase(integration_service, ticket_systems, entries)
    return await use_case.execute(user, limit)


@router.get("/projects/syncsubtickets")
async def sync_all_project_subtickets(user: ProjectLead, subticket_sync: SubticketSync) -> Dict[str, bool]:
    """Refresh the subtickets of every project with a ticket system."""
    return {"success": subticket_sync.sync_all_projects()}


@router.get("/projects/{project_id}/syncsubtickets")
async def sync_project_subtickets(project_id: int, user: ProjectLead, subticket_sync: SubticketSync):
    """Returns {success, subtickets}, unknown projects give 404."""
    subtickets = subticket_sync.sync_project_subtickets(project_id)
    return {"success": True, "subtickets": subtickets}
