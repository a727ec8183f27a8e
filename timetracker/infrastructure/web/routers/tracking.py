"""
Tracking router.
Saving, deleting and bulk booking of time entries.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from timetracker.application.dto.base_dto import IdRequestDTO
from timetracker.application.dto.entry_dto import BulkEntryRequestDTO, EntrySaveRequestDTO
from timetracker.application.use_cases.entry_use_cases import (
    BulkEntryUseCase,
    DeleteEntryUseCase,
    SaveEntryUseCase,
)
from timetracker.infrastructure.auth import CurrentUser
from timetracker.infrastructure.repositories import (
    OptimizedEntryRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyHolidayRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
)
from timetracker.infrastructure.web.dependencies import (
    get_activity_repository,
    get_contract_repository,
    get_customer_repository,
    get_entry_repository,
    get_holiday_repository,
    get_preset_repository,
    get_project_repository,
    request_payload,
)

router = APIRouter()

EntryRepository = Annotated[OptimizedEntryRepository, Depends(get_entry_repository)]
Payload = Annotated[Dict[str, Any], Depends(request_payload)]


@router.post("/save")
async def save_entry(
    user: CurrentUser,
    payload: Payload,
    entry_repository: EntryRepository,
    customer_repository: Annotated[SQLAlchemyCustomerRepository, Depends(get_customer_repository)],
    project_repository: Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)],
    activity_repository: Annotated[SQLAlchemyActivityRepository, Depends(get_activity_repository)],
):
    """
    Create or update a time entry.

    - **id**: entry to update, empty for a new entry
    - **date**, **start**, **end**: day and times of the booking
    - **customer**, **project**, **activity**: booked on
    - **ticket**, **description**: optional details
    """
    request = EntrySaveRequestDTO.model_validate(payload)
    use_case = SaveEntryUseCase(entry_repository, customer_repository, project_repository, activity_repository)
    return await use_case.execute(user, request)


@router.post("/delete")
async def delete_entry(user: CurrentUser, payload: Payload, entry_repository: EntryRepository):
    """Delete an entry of the current user."""
    request = IdRequestDTO.model_validate(payload)
    use_case = DeleteEntryUseCase(entry_repository)
    return await use_case.execute(user, request.id)


@router.post("/bulkentry")
async def bulk_entry(
    user: CurrentUser,
    payload: Payload,
    entry_repository: EntryRepository,
    preset_repository: Annotated[SQLAlchemyPresetRepository, Depends(get_preset_repository)],
    contract_repository: Annotated[SQLAlchemyContractRepository, Depends(get_contract_repository)],
    holiday_repository: Annotated[SQLAlchemyHolidayRepository, Depends(get_holiday_repository)],
):
    """
    Book a preset on every day between startdate and enddate.

    - **usecontract**: book the contract hours instead of starttime/endtime
    - **skipweekend**, **skipholidays**: leave those days out
    """
    request = BulkEntryRequestDTO.model_validate(payload)
    use_case = BulkEntryUseCase(entry_repository, preset_repository, contract_repository, holiday_repository)
    return await use_case.execute(user, request)
