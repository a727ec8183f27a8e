"""
Controlling export DTO.
"""

from typing import Optional

from pydantic import Field, validator

from .base_dto import RequestDTO


class ControllingExportRequestDTO(RequestDTO):
    """Month report parameters, 0 means no filter for user, month, project and customer."""

    userid: int = Field(default=0, ge=0)
    year: int = Field(ge=1900, le=2100)
    month: int = Field(default=0, ge=0, le=12, description="0 exports the whole year")
    project: Optional[int] = None
    customer: Optional[int] = None

    @validator('project', 'customer', pre=True)
    def zero_is_no_filter(cls, v):
        if v in (None, "", "0", 0):
            return None
        return v
