"""
Interpretation use cases.
Aggregate booked time by customer, project, activity, ticket, user and day.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from timetracker.application.dto.interpretation_dto import InterpretationFiltersDTO
from timetracker.config import settings
from timetracker.domain.models.base import BusinessRuleViolation, ValidationError
from timetracker.domain.models.enums import UserType
from timetracker.domain.services.time_calculation_service import TimeCalculationService
from timetracker.infrastructure.db.models import EntryModel, UserModel
from timetracker.infrastructure.mappers.entry_mapper import EntryMapper
from timetracker.infrastructure.pagination import PaginatedEntryCollection
from timetracker.infrastructure.repositories import SQLAlchemyEntryRepository
from .base_use_case import QueryUseCase

logger = logging.getLogger(__name__)

LAST_ENTRIES_LIMIT = 50
MISSING_SCOPE_MESSAGE = "You need to specify at least customer, project, ticket, user or month and year."


class InterpretationUseCase(QueryUseCase):
    """Loads the entries matching the interpretation filters."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository
        self.time_calculation = TimeCalculationService()

    def get_entries(
        self,
        user: UserModel,
        filters: InterpretationFiltersDTO,
        max_results: Optional[int] = None,
    ) -> List[EntryModel]:
        # Developers only ever see their own bookings
        visibility_user = user.id if UserType(user.type) == UserType.DEV else None
        entry_filter = filters.to_entry_filter(visibility_user, max_results)

        if not entry_filter.has_scope():
            raise ValidationError(MISSING_SCOPE_MESSAGE)

        return self.entry_repository.find_by_filter_array(entry_filter)


class GroupEntriesUseCase(InterpretationUseCase):
    """
    Sum up booked hours per group with each group's share of the total.
    Groups are sorted by name, descending.
    """

    def _group(self, entries: List[EntryModel], key: Callable[[EntryModel], Optional[Dict[str, Any]]]):
        groups: Dict[Any, Dict[str, Any]] = {}
        for entry in entries:
            group = key(entry)
            if group is None:
                continue
            item = groups.setdefault(group["key"], {"id": group["id"], "name": group["name"], "hours": 0, "quota": 0})
            item["hours"] += (entry.duration or 0) / 60

        total = sum(item["hours"] for item in groups.values())
        for item in groups.values():
            item["quota"] = self.time_calculation.format_quota(item["hours"], total)

        return sorted(groups.values(), key=lambda item: item["name"] or "", reverse=True)

    async def by_customer(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        def key(entry):
            customer = entry.effective_customer
            if customer is None:
                return None
            return {"key": customer.id, "id": customer.id, "name": customer.name}

        return self._group(self.get_entries(user, filters), key)

    async def by_project(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        def key(entry):
            if entry.project is None:
                return None
            return {"key": entry.project.id, "id": entry.project.id, "name": entry.project.name}

        return self._group(self.get_entries(user, filters), key)

    async def by_activity(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        def key(entry):
            if entry.activity is None:
                return None
            return {"key": entry.activity.id, "id": entry.activity.id, "name": entry.activity.name}

        return self._group(self.get_entries(user, filters), key)

    async def by_ticket(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        def key(entry):
            if entry.ticket in ("", "-", None):
                return None
            return {"key": entry.ticket, "id": entry.id, "name": entry.ticket}

        return self._group(self.get_entries(user, filters), key)

    async def by_user(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        # Only the own share is reported per user
        filters = filters.model_copy(update={"user": user.id})

        def key(entry):
            if entry.user is None:
                return None
            return {"key": entry.user.id, "id": entry.user.id, "name": entry.user.username}

        return self._group(self.get_entries(user, filters), key)

    async def by_worktime(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        """Booked time per day in chronological order."""
        days: Dict[str, Dict[str, Any]] = {}
        for entry in self.get_entries(user, filters):
            name = entry.day.strftime("%y-%m-%d")
            item = days.setdefault(
                name, {"id": None, "name": name, "day": entry.day.strftime("%d.%m."), "minutes": 0}
            )
            item["minutes"] += entry.duration or 0

        total = sum(item["minutes"] for item in days.values())
        result = []
        for name in sorted(days):
            item = days[name]
            result.append({
                "id": None,
                "name": item["name"],
                "day": item["day"],
                "hours": item["minutes"] / 60.0,
                "quota": self.time_calculation.format_quota(item["minutes"], total),
            })
        return result


class GetLastEntriesUseCase(InterpretationUseCase):
    """The latest matching entries with their share of the listed time."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__(entry_repository)
        self.mapper = EntryMapper(self.time_calculation)

    async def execute(self, user: UserModel, filters: InterpretationFiltersDTO) -> List[Dict[str, Any]]:
        entries = self.get_entries(user, filters, LAST_ENTRIES_LIMIT)
        total = self.entry_repository.get_total_duration(entries)

        result = []
        for entry in entries:
            flat = self.mapper.to_array(entry)
            flat["quota"] = self.time_calculation.format_quota(flat["duration"], total)
            flat["duration"] = self.time_calculation.format_duration(flat["duration"])
            result.append({"entry": flat})
        return result


class GetAllEntriesUseCase(QueryUseCase):
    """One page of all matching entries for the project lead export views."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository

    async def execute(self, filters: InterpretationFiltersDTO) -> PaginatedEntryCollection:
        page = filters.page or 0
        if page < 0:
            raise BusinessRuleViolation("page can not be negative.")

        max_results = filters.max_results or settings.default_max_results
        entry_filter = filters.to_entry_filter(max_results=max_results)

        entries = self.entry_repository.find_by_filter_array(entry_filter)
        total = self.entry_repository.count_by_filter_array(entry_filter)
        logger.debug(f"All entries page {page}: {len(entries)} of {total}")

        return PaginatedEntryCollection(
            entries=entries,
            total_count=total,
            current_page=page,
            max_results=max_results,
        )
