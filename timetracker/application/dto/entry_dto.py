"""
Entry DTOs for the application layer.
Data Transfer Objects for time tracking operations.
"""

import datetime as dt
import re
from datetime import date, time
from typing import Optional

from pydantic import AliasChoices, Field, validator

from .base_dto import RequestDTO, parse_clock_time, parse_day

TICKET_PATTERN = re.compile(r"^[A-Z0-9\-_]*$", re.IGNORECASE)


class EntrySaveRequestDTO(RequestDTO):
    """DTO for creating or updating a time entry."""

    id: Optional[int] = Field(default=None, description="Entry ID, empty for a new entry")
    date: dt.date = Field(description="Day of the entry")
    start: time = Field(description="Start time")
    end: time = Field(description="End time")
    ticket: str = Field(default="", max_length=50, description="Ticket key")
    description: str = Field(default="", max_length=1000, description="Work description")
    customer_id: Optional[int] = Field(
        default=None, gt=0, validation_alias=AliasChoices("customer_id", "customer")
    )
    project_id: Optional[int] = Field(
        default=None, gt=0, validation_alias=AliasChoices("project_id", "project")
    )
    activity_id: Optional[int] = Field(
        default=None, gt=0, validation_alias=AliasChoices("activity_id", "activity")
    )
    ext_ticket: str = Field(default="", validation_alias=AliasChoices("extTicket", "ext_ticket"))

    @validator('id', 'customer_id', 'project_id', 'activity_id', pre=True)
    def empty_reference_is_none(cls, v):
        if v in ("", 0, "0"):
            return None
        return v

    @validator('date', pre=True)
    def validate_date(cls, v):
        day = parse_day(v)
        if day is None:
            raise ValueError('Date is required')
        return day

    @validator('start', 'end', pre=True)
    def validate_time(cls, v):
        value = parse_clock_time(v)
        if value is None:
            raise ValueError('Time is required')
        return value

    @validator('ticket', pre=True)
    def validate_ticket(cls, v):
        v = (v or "").strip()
        if not TICKET_PATTERN.match(v):
            raise ValueError('Invalid ticket format')
        return v

    @validator('description', pre=True)
    def strip_description(cls, v):
        return (v or "").strip()


class BulkEntryRequestDTO(RequestDTO):
    """DTO for booking a preset over a range of days."""

    preset: int = Field(gt=0, description="Preset ID")
    startdate: date = Field(description="First day")
    enddate: date = Field(description="Last day")
    starttime: Optional[time] = Field(default=None, description="Start time when not using the contract")
    endtime: Optional[time] = Field(default=None, description="End time when not using the contract")
    usecontract: bool = Field(default=False, description="Book the contract hours of each day")
    skipweekend: bool = Field(default=False, description="Leave out Saturdays and Sundays")
    skipholidays: bool = Field(default=False, description="Leave out public holidays")

    @validator('startdate', 'enddate', pre=True)
    def validate_day(cls, v):
        day = parse_day(v)
        if day is None:
            raise ValueError('Date is required')
        return day

    @validator('starttime', 'endtime', pre=True)
    def validate_time(cls, v):
        return parse_clock_time(v)

    @validator('usecontract', 'skipweekend', 'skipholidays', pre=True)
    def validate_flag(cls, v):
        if v in (None, ""):
            return False
        if isinstance(v, str) and v.isdigit():
            return int(v) > 0
        return v

    @validator('enddate')
    def validate_date_range(cls, v, values):
        if values.get('startdate') and v < values['startdate']:
            raise ValueError('Start date must be before or equal to end date')
        return v

    @validator('endtime')
    def validate_time_range(cls, v, values):
        start = values.get('starttime')
        if not values.get('usecontract') and start is not None and v is not None and start >= v:
            raise ValueError('The activity must last at least one minute')
        return v
