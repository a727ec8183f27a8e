"""
Base DTOs for the application layer.
Provides common patterns for request data transfer objects.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, validator


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Convert enum values to their values
        use_enum_values=True,
        # The browser client posts whole form records, unknown keys are dropped
        extra="ignore",
    )


class RequestDTO(BaseDTO):
    """Base class for request DTOs."""
    pass


class SaveRequestDTO(RequestDTO):
    """Admin save request, id 0 creates a new record."""

    id: int = Field(default=0, ge=0, description="ID of the record to update, 0 for new")

    @validator('id', pre=True)
    def empty_id_is_new(cls, v):
        if v in (None, ""):
            return 0
        return v

    @property
    def is_new(self) -> bool:
        return self.id == 0


class IdRequestDTO(RequestDTO):
    """Request carrying the id of a single record."""

    id: Optional[int] = Field(default=None, description="Record ID")

    @validator('id', pre=True)
    def empty_id_is_none(cls, v):
        if v in (None, "", "0", 0):
            return None
        return v


def parse_day(value: Any) -> Optional[date]:
    """Dates arrive as Y-m-d or as Y-m-dTH:i:s from the grid."""
    if value in (None, "", "0"):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def parse_clock_time(value: Any) -> Optional[time]:
    """Times arrive as H:i, H:i:s or as a full Y-m-dTH:i:s timestamp."""
    if value in (None, "", "0"):
        return None
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    text = str(value).strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    parsed = time.fromisoformat(text[:8] if len(text) > 5 else text)
    return parsed.replace(second=0, microsecond=0)
