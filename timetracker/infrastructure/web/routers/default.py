"""
Default router.
Lists and statistics the tracking frontend loads, plus personal settings and export.
"""

import io
import logging
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials

from timetracker.application.dto.settings_dto import SettingsSaveRequestDTO
from timetracker.application.use_cases.entry_use_cases import (
    GetDataUseCase,
    GetSummaryUseCase,
    GetTicketTimeSummaryUseCase,
    GetTimeSummaryUseCase,
)
from timetracker.application.use_cases.settings_use_cases import (
    EXPORT_DAYS,
    ExportEntriesUseCase,
    SaveSettingsUseCase,
)
from timetracker.domain.services.work_day_service import MAX_WORK_DAYS
from timetracker.infrastructure.auth import CurrentUser, get_jwt_handler, security
from timetracker.infrastructure.auth.jwt_handler import JWTHandler
from timetracker.infrastructure.repositories import (
    OptimizedEntryRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyHolidayRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
    SQLAlchemyTeamRepository,
    SQLAlchemyTicketSystemRepository,
    SQLAlchemyUserRepository,
)
from timetracker.infrastructure.web.dependencies import (
    get_activity_repository,
    get_contract_repository,
    get_customer_repository,
    get_entry_repository,
    get_holiday_repository,
    get_preset_repository,
    get_project_repository,
    get_team_repository,
    get_ticket_system_repository,
    get_user_repository,
    request_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EntryRepository = Annotated[OptimizedEntryRepository, Depends(get_entry_repository)]
Payload = Annotated[Dict[str, Any], Depends(request_payload)]


def _int_or_none(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


@router.get("/status/check")
async def check_status(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)],
) -> Dict[str, bool]:
    """Whether the client still holds a valid login."""
    logged_in = credentials is not None and jwt_handler.is_token_valid(credentials.credentials)
    return {"loginStatus": logged_in}


@router.api_route("/getData", methods=["GET", "POST"])
async def get_data(
    user: CurrentUser,
    repository: EntryRepository,
    days: int = Query(3, ge=0, le=MAX_WORK_DAYS, description="Working days to show"),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: Optional[int] = Query(None, alias="user"),
    project: Optional[int] = Query(None),
    customer: Optional[int] = Query(None),
):
    """
    Rows of the tracking grid.

    With a year the booked minutes of that year or month are returned instead.
    """
    use_case = GetDataUseCase(repository)
    return await use_case.execute(
        user, days, year=year, month=month, user_id=user_id, project_id=project, customer_id=customer
    )


@router.api_route("/getData/days/{days}", methods=["GET", "POST"])
async def get_data_for_days(
    user: CurrentUser,
    repository: EntryRepository,
    days: int = Path(ge=0, le=MAX_WORK_DAYS),
):
    use_case = GetDataUseCase(repository)
    return await use_case.execute(user, days)


@router.post("/getSummary")
async def get_summary(user: CurrentUser, repository: EntryRepository, payload: Payload):
    """Totals of customer, project, activity and ticket of the selected entry."""
    use_case = GetSummaryUseCase(repository)
    return await use_case.execute(user, _int_or_none(payload.get("id")))


@router.get("/getTimeSummary")
async def get_time_summary(user: CurrentUser, repository: EntryRepository):
    use_case = GetTimeSummaryUseCase(repository)
    return await use_case.execute(user)


@router.get("/getTicketTimeSummary/{ticket}")
async def get_ticket_time_summary(ticket: str, user: CurrentUser, repository: EntryRepository):
    use_case = GetTicketTimeSummaryUseCase(repository)
    return await use_case.execute(ticket)


@router.get("/getCustomers")
async def get_customers(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)],
) -> List[Dict[str, Any]]:
    """Customers the current user may book on."""
    return repository.get_customers_by_user(user.id)


@router.get("/getAllCustomers")
async def get_all_customers(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_all_customers()


@router.get("/getProjects")
async def get_projects(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)],
    customer: int = Query(0, ge=0),
) -> List[Dict[str, Any]]:
    """Projects the current user may book on, optionally of one customer."""
    return repository.get_projects_by_user(user.id, customer)


@router.get("/getAllProjects")
async def get_all_projects(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)],
    customer: int = Query(0, ge=0),
) -> List[Dict[str, Any]]:
    return repository.get_all_projects(customer)


@router.get("/getProjectStructure")
async def get_project_structure(
    user: CurrentUser,
    customer_repository: Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)],
    project_repository: Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)],
) -> Dict[str, List[Dict[str, Any]]]:
    customers = customer_repository.get_customers_by_user(user.id)
    return project_repository.get_project_structure(user.id, customers)


@router.get("/getActivities")
async def get_activities(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyActivityRepository, Depends(get_activity_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_activities()


@router.get("/getUsers")
async def get_users(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)],
) -> List[Dict[str, Any]]:
    """All users, the current one first."""
    return repository.get_users(user.id)


@router.get("/getAllUsers")
async def get_all_users(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_all_users()


@router.get("/getAllTeams")
async def get_all_teams(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyTeamRepository, Depends(get_team_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_all_teams()


@router.get("/getContracts")
async def get_contracts(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyContractRepository, Depends(get_contract_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_contracts()


@router.get("/getAllPresets")
async def get_all_presets(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyPresetRepository, Depends(get_preset_repository)],
) -> List[Dict[str, Any]]:
    return repository.get_all_presets()


@router.get("/getTicketSystems")
async def get_ticket_systems(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyTicketSystemRepository, Depends(get_ticket_system_repository)],
) -> List[Dict[str, Any]]:
    ticket_systems = repository.get_all_ticket_systems()
    if not user.is_project_lead:
        # Only project leads see the connection details
        for item in ticket_systems:
            item["ticketSystem"] = {
                "id": item["ticketSystem"]["id"],
                "name": item["ticketSystem"]["name"],
            }
    return ticket_systems


@router.get("/getHolidays")
async def get_holidays(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyHolidayRepository, Depends(get_holiday_repository)],
    year: int = Query(..., ge=1900, le=2100),
    month: int = Query(..., ge=1, le=12),
) -> List[Dict[str, Any]]:
    return [
        {"holiday": {"day": holiday.day.isoformat(), "name": holiday.name}}
        for holiday in repository.find_by_month(year, month)
    ]


@router.post("/settings/save")
async def save_settings(
    user: CurrentUser,
    repository: Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)],
    payload: Payload,
):
    request = SettingsSaveRequestDTO.model_validate(payload)
    use_case = SaveSettingsUseCase(repository)
    return await use_case.execute(user, request)


@router.get("/export/{days}")
@router.get("/export")
async def export_entries(user: CurrentUser, repository: EntryRepository, days: int = EXPORT_DAYS):
    """The user's entries as CSV download."""
    use_case = ExportEntriesUseCase(repository)
    export = await use_case.execute(user, days)
    return StreamingResponse(
        io.StringIO(export.content),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment;filename={export.filename}"},
    )
