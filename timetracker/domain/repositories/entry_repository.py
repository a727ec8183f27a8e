"""Entry repository interface.
Defines the contract for entry queries and aggregates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from timetracker.domain.models.enums import Period


@dataclass
class EntryFilter:
    """
    Criteria for filtered entry queries.
    Every criterion that is set is ANDed to the query.
    """

    customer: Optional[int] = None
    project: Optional[int] = None
    activity: Optional[int] = None
    user: Optional[int] = None
    team: Optional[int] = None
    datestart: Optional[date] = None
    dateend: Optional[date] = None
    ticket: Optional[str] = None
    description: Optional[str] = None
    visibility_user: Optional[int] = None
    max_results: Optional[int] = None
    page: Optional[int] = None
    start: Optional[int] = None
    sort: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def offset(self) -> int:
        """
        Row offset for pagination.
        An explicit start always wins over page * max_results.
        """
        if self.start is not None:
            return max(self.start, 0)
        if self.page and self.max_results and self.max_results > 0:
            return max(self.page, 0) * self.max_results
        return 0

    def has_scope(self) -> bool:
        """True when at least customer, project, user or ticket narrows the result."""
        return any(
            value is not None
            for value in (self.customer, self.project, self.user, self.ticket)
        )


def empty_summary() -> Dict[str, Dict[str, Any]]:
    """Summary structure returned when no entry is selected."""
    return {
        scope: {
            "scope": scope,
            "name": "",
            "entries": 0,
            "total": 0,
            "own": 0,
            "estimation": 0,
        }
        for scope in ("customer", "project", "activity", "ticket")
    }


class EntryRepository(ABC):
    """
    Repository interface for time entries.
    """

    @abstractmethod
    def find_by_id(self, entry_id: int):
        """Find an entry by its ID, None if not found."""
        pass

    @abstractmethod
    def find_by_filter_array(self, filters: EntryFilter) -> List[Any]:
        """Entries matching the filter, newest first."""
        pass

    @abstractmethod
    def count_by_filter_array(self, filters: EntryFilter) -> int:
        """Number of entries matching the filter, ignoring pagination."""
        pass

    @abstractmethod
    def find_by_recent_days_of_user(self, user_id: int, days: int = 3) -> List[Any]:
        """Entries of the last working days of a user."""
        pass

    @abstractmethod
    def find_by_day(self, user_id: int, day: date) -> List[Any]:
        """Entries of a single day of a user."""
        pass

    @abstractmethod
    def get_entry_summary(self, entry_id: int, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Customer, project, activity and ticket totals around an entry.
        'own' only counts entries of the given user.
        """
        pass

    @abstractmethod
    def get_work_by_user(self, user_id: int, period: Period = Period.DAY) -> Dict[str, Any]:
        """Booked duration and entry count for today, this week or this month."""
        pass

    @abstractmethod
    def get_calendar_days_by_work_days(self, work_days: int) -> int:
        """Calendar days covering the given number of working days up to today."""
        pass
