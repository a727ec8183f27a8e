"""
Interpretation router.
Booked time grouped for the reporting charts, and the paginated entry list.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Request

from timetracker.application.dto.interpretation_dto import InterpretationFiltersDTO
from timetracker.application.use_cases.interpretation_use_cases import (
    GetAllEntriesUseCase,
    GetLastEntriesUseCase,
    GroupEntriesUseCase,
)
from timetracker.infrastructure.auth import CurrentUser, ProjectLead
from timetracker.infrastructure.pagination import get_pagination_links
from timetracker.infrastructure.repositories import OptimizedEntryRepository
from timetracker.infrastructure.web.dependencies import get_entry_repository, request_payload

router = APIRouter()

EntryRepository = Annotated[OptimizedEntryRepository, Depends(get_entry_repository)]


def get_filters(request: Request) -> InterpretationFiltersDTO:
    return InterpretationFiltersDTO.from_mapping(request.query_params)


Filters = Annotated[InterpretationFiltersDTO, Depends(get_filters)]


@router.get("/customer")
async def group_by_customer(user: CurrentUser, filters: Filters, repository: EntryRepository):
    return await GroupEntriesUseCase(repository).by_customer(user, filters)


@router.get("/project")
async def group_by_project(user: CurrentUser, filters: Filters, repository: EntryRepository):
    return await GroupEntriesUseCase(repository).by_project(user, filters)


@router.get("/activity")
async def group_by_activity(user: CurrentUser, filters: Filters, repository: EntryRepository):
    return await GroupEntriesUseCase(repository).by_activity(user, filters)


@router.get("/ticket")
async def group_by_ticket(user: CurrentUser, filters: Filters, repository: EntryRepository):
    return await GroupEntriesUseCase(repository).by_ticket(user, filters)


@router.get("/user")
async def group_by_user(user: CurrentUser, filters: Filters, repository: EntryRepository):
    return await GroupEntriesUseCase(repository).by_user(user, filters)


@router.get("/time")
async def group_by_worktime(user: CurrentUser, filters: Filters, repository: EntryRepository):
    """Booked hours per day, oldest day first."""
    return await GroupEntriesUseCase(repository).by_worktime(user, filters)


@router.get("/entries")
async def get_last_entries(user: CurrentUser, filters: Filters, repository: EntryRepository):
    """The 50 latest matching entries."""
    return await GetLastEntriesUseCase(repository).execute(user, filters)


@router.api_route("/allEntries", methods=["GET", "POST"])
async def get_all_entries(
    request: Request,
    user: ProjectLead,
    payload: Annotated[Dict[str, Any], Depends(request_payload)],
    repository: EntryRepository,
):
    """
    One page of all matching entries with navigation links.

    - **page**: zero based page, negative pages are rejected
    - **maxResults**: page size, 50 when not given
    """
    filters = InterpretationFiltersDTO.from_mapping(payload)
    collection = await GetAllEntriesUseCase(repository).execute(filters)

    base_url = str(request.url.replace(query=""))
    links = get_pagination_links(base_url, collection, payload)
    return {"links": links, "data": collection.to_array()}
