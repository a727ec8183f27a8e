"""
Controlling router.
Monthly Excel reports for the controlling department.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from timetracker.application.dto.controlling_dto import ControllingExportRequestDTO
from timetracker.application.use_cases.controlling_use_cases import (
    XLSX_MEDIA_TYPE,
    ExportControllingUseCase,
)
from timetracker.infrastructure.auth import CurrentUser
from timetracker.infrastructure.repositories import OptimizedEntryRepository, SQLAlchemyUserRepository
from timetracker.infrastructure.web.dependencies import get_entry_repository, get_user_repository

router = APIRouter()


@router.get("/export")
async def export_controlling(
    request: Request,
    user: CurrentUser,
    entries: Annotated[OptimizedEntryRepository, Depends(get_entry_repository)],
    users: Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)],
):
    """
    Entries of a month as xlsx download.

    - **year**: 1900 to 2100, required
    - **month**: 1 to 12, 0 or missing exports the whole year
    - **userid**, **project**, **customer**: 0 or missing for all
    """
    export_request = ControllingExportRequestDTO.model_validate(dict(request.query_params))
    export = await ExportControllingUseCase(entries, users).execute(user, export_request)
    return Response(
        content=export.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment;filename={export.filename}"},
    )
