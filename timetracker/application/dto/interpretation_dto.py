"""
Interpretation filter DTO.
Query parameters of the reporting endpoints, legacy *_id names included.
"""

import calendar
from datetime import date
from typing import Any, Mapping, Optional

from pydantic import Field, validator

from timetracker.domain.repositories.entry_repository import EntryFilter
from .base_dto import RequestDTO, parse_day


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if text == "" or not text.lstrip("-").isdigit():
        return None
    return int(text)


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class InterpretationFiltersDTO(RequestDTO):
    """Filters shared by all interpretation endpoints."""

    customer: Optional[int] = None
    customer_id: Optional[int] = None
    project: Optional[int] = None
    project_id: Optional[int] = None
    user: Optional[int] = None
    activity: Optional[int] = None
    activity_id: Optional[int] = None
    team: Optional[int] = None
    ticket: Optional[str] = None
    description: Optional[str] = None
    datestart: Optional[date] = None
    dateend: Optional[date] = None
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    max_results: Optional[int] = Field(default=None, alias="maxResults")
    page: Optional[int] = None
    start: Optional[int] = None

    @validator('datestart', 'dateend', pre=True)
    def validate_day(cls, v):
        try:
            return parse_day(v)
        except ValueError:
            return None

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "InterpretationFiltersDTO":
        """Build filters from query or form parameters, unparsable values count as missing."""
        int_fields = (
            "customer", "customer_id", "project", "project_id", "user", "activity",
            "activity_id", "team", "year", "month", "maxResults", "page", "start",
        )
        data = {name: _to_int(params.get(name)) for name in int_fields}
        for name in ("ticket", "description", "datestart", "dateend"):
            data[name] = _to_text(params.get(name))
        return cls(**data)

    @property
    def customer_filter(self) -> Optional[int]:
        return self.customer or self.customer_id

    @property
    def project_filter(self) -> Optional[int]:
        return self.project or self.project_id

    @property
    def activity_filter(self) -> Optional[int]:
        return self.activity or self.activity_id

    def date_range(self):
        """A given year, narrowed by month, replaces datestart and dateend."""
        if not self.year:
            return self.datestart, self.dateend
        if self.month:
            last = calendar.monthrange(self.year, self.month)[1]
            return date(self.year, self.month, 1), date(self.year, self.month, last)
        return date(self.year, 1, 1), date(self.year, 12, 31)

    def to_entry_filter(
        self,
        visibility_user: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> EntryFilter:
        datestart, dateend = self.date_range()
        return EntryFilter(
            customer=self.customer_filter,
            project=self.project_filter,
            activity=self.activity_filter,
            user=self.user,
            team=self.team,
            ticket=self.ticket,
            description=self.description,
            datestart=datestart,
            dateend=dateend,
            visibility_user=visibility_user,
            max_results=max_results if max_results is not None else self.max_results,
            page=self.page or 0,
            start=self.start,
        )
