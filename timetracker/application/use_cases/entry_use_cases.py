"""
Entry use cases for the application layer.
Booking, deleting and summarizing time entries of the tracking frontend.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from timetracker.application.dto.entry_dto import BulkEntryRequestDTO, EntrySaveRequestDTO
from timetracker.domain.events.entry_events import EntryCreated, EntryDeleted, EntryUpdated
from timetracker.domain.models.base import (
    BusinessRuleViolation, EntityNotFoundError, ValidationError
)
from timetracker.domain.models.enums import EntryClass, Period
from timetracker.domain.repositories.entry_repository import empty_summary
from timetracker.domain.services.time_calculation_service import TimeCalculationService
from timetracker.infrastructure.db.models import EntryModel, UserModel
from timetracker.infrastructure.mappers.entry_mapper import EntryMapper
from timetracker.infrastructure.repositories import (
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyEntryRepository,
    SQLAlchemyHolidayRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
)
from .base_use_case import AuthorizedUseCase, CommandUseCase, QueryUseCase

logger = logging.getLogger(__name__)

# Fixed public holidays as month-day, booked days on these are skipped on request
REGULAR_HOLIDAYS = ("01-01", "05-01", "10-03", "10-31", "12-25", "12-26")
MAX_BULK_DAYS = 100
CONTRACT_DAY_START = time(8, 0)


def calculate_classes(entry_repository: SQLAlchemyEntryRepository, user_id: int, day: date) -> List[EntryModel]:
    """
    Recalculate the display classes of all entries of a user's day.

    Entries overlapping the next one are flagged OVERLAP on both sides.
    A gap of an hour or more before the next entry marks a DAYBREAK,
    a shorter gap a PAUSE.
    """
    entries = entry_repository.find_by_day(user_id, day)
    for entry in entries:
        entry.entry_class = int(EntryClass.PLAIN)

    for current, following in zip(entries, entries[1:]):
        current_end = current.end.hour * 60 + current.end.minute
        next_start = following.start.hour * 60 + following.start.minute

        if current_end > next_start:
            current.add_class(EntryClass.OVERLAP)
            following.add_class(EntryClass.OVERLAP)
            continue

        gap = next_start - current_end
        if gap >= 60:
            current.add_class(EntryClass.DAYBREAK)
        elif gap > 0:
            current.add_class(EntryClass.PAUSE)

    entry_repository.session.flush()
    return entries


class SaveEntryUseCase(CommandUseCase, AuthorizedUseCase):
    """
    Create or update an entry of the current user.
    """

    def __init__(
        self,
        entry_repository: SQLAlchemyEntryRepository,
        customer_repository: SQLAlchemyCustomerRepository,
        project_repository: SQLAlchemyProjectRepository,
        activity_repository: SQLAlchemyActivityRepository,
    ):
        super().__init__()
        self.entry_repository = entry_repository
        self.customer_repository = customer_repository
        self.project_repository = project_repository
        self.activity_repository = activity_repository
        self.mapper = EntryMapper()

    async def execute(self, user: UserModel, request: EntrySaveRequestDTO) -> Dict[str, Any]:
        self._start()
        self.set_current_user(user)

        customer = project = activity = None
        if request.customer_id is not None:
            customer = self.customer_repository.find_by_id(request.customer_id)
            if customer is None:
                raise BusinessRuleViolation("Given customer does not exist.")

        if request.project_id is not None:
            project = self.project_repository.find_by_id(request.project_id)
            if project is None:
                raise BusinessRuleViolation("Given project does not exist.")

        if request.activity_id is not None:
            activity = self.activity_repository.find_by_id(request.activity_id)
            if activity is None:
                raise BusinessRuleViolation("Given activity does not exist.")

        if project is not None and request.ticket:
            self._validate_ticket(project, request.ticket)

        is_new = request.id is None
        if is_new:
            entry = EntryModel(user_id=user.id)
            previous = {}
        else:
            entry = self._require(self.entry_repository.find_by_id(request.id), "Entry", request.id)
            self._require_owner(entry.user_id)
            previous = {
                "day": entry.day,
                "start": entry.start,
                "end": entry.end,
                "ticket": entry.ticket,
                "description": entry.description,
                "project_id": entry.project_id,
                "activity_id": entry.activity_id,
            }

        previous_day = entry.day
        entry.user = user
        entry.customer = customer if customer is not None else (project.customer if project else None)
        entry.project = project
        entry.activity = activity
        entry.ticket = request.ticket
        entry.description = request.description
        entry.internal_jira_ticket_original_key = request.ext_ticket or None
        entry.day = request.date
        entry.start = request.start
        entry.end = request.end
        entry.entry_class = int(EntryClass.DAYBREAK)

        if project is not None and not project.active:
            raise BusinessRuleViolation("Project is no longer active.")

        if request.start >= request.end:
            raise BusinessRuleViolation("Start time cannot be after end time.")

        entry.calculate_duration()
        self.entry_repository.save(entry)

        calculate_classes(self.entry_repository, user.id, entry.day)
        if previous_day is not None and previous_day != entry.day:
            calculate_classes(self.entry_repository, user.id, previous_day)

        if is_new:
            self.record_event(EntryCreated(entry=entry, user_id=user.id))
        else:
            changes = {
                key: getattr(entry, key)
                for key, value in previous.items()
                if getattr(entry, key) != value
            }
            self.record_event(EntryUpdated(entry=entry, user_id=user.id, changes=changes))

        logger.info(f"Entry {entry.id} saved for user {user.id} ({entry.duration} minutes)")
        await self._publish_events()
        self._finish()
        return {"result": self.mapper.to_save_result(entry)}

    def _validate_ticket(self, project, ticket: str) -> None:
        prefixes = project.jira_prefixes()
        if not prefixes:
            return
        if not any(ticket.startswith(prefix) for prefix in prefixes):
            raise BusinessRuleViolation("Given ticket does not have a valid prefix.")
        if "-" not in ticket:
            raise BusinessRuleViolation("Given ticket does not have a valid format.")


class DeleteEntryUseCase(CommandUseCase, AuthorizedUseCase):
    """
    Delete an entry and re-evaluate the remaining entries of its day.
    """

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository

    async def execute(self, user: UserModel, entry_id: Optional[int]) -> Dict[str, Any]:
        self._start()
        self.set_current_user(user)

        if not entry_id or entry_id <= 0:
            return {"success": True}

        entry = self._require(self.entry_repository.find_by_id(entry_id), "Entry", entry_id)
        self._require_owner(entry.user_id)

        # Handlers need the row to remove the ticket system worklog
        self.record_event(EntryDeleted(entry=entry, user_id=user.id))
        await self._publish_events()

        day = entry.day
        self.entry_repository.delete(entry)
        calculate_classes(self.entry_repository, user.id, day)

        logger.info(f"Entry {entry_id} deleted by user {user.id}")
        self._finish()
        return {"success": True}


class BulkEntryUseCase(CommandUseCase, AuthorizedUseCase):
    """
    Book a preset on every day of a date range.

    Weekends and holidays may be skipped, and the booked time may come
    from the user's contract instead of a fixed start and end.
    """

    def __init__(
        self,
        entry_repository: SQLAlchemyEntryRepository,
        preset_repository: SQLAlchemyPresetRepository,
        contract_repository: SQLAlchemyContractRepository,
        holiday_repository: SQLAlchemyHolidayRepository,
    ):
        super().__init__()
        self.entry_repository = entry_repository
        self.preset_repository = preset_repository
        self.contract_repository = contract_repository
        self.holiday_repository = holiday_repository

    async def execute(self, user: UserModel, request: BulkEntryRequestDTO) -> Dict[str, Any]:
        self._start()
        self.set_current_user(user)
        logger.info(
            f"Bulk entry for user {user.id}: preset {request.preset}, "
            f"{request.startdate} - {request.enddate}"
        )

        preset = self.preset_repository.find_by_id(request.preset)
        if preset is None:
            raise ValidationError("Preset not found", field="preset")

        contracts = []
        if request.usecontract:
            contracts = self.contract_repository.find_by_user(user.id)
            if not contracts:
                raise ValidationError(
                    "No contract for user found. Please use custome time.", field="usecontract"
                )

        holidays = set()
        if request.skipholidays:
            holidays = self.holiday_repository.find_days_between(request.startdate, request.enddate)

        added = 0
        day = request.startdate
        for _ in range(MAX_BULK_DAYS):
            if day > request.enddate:
                break

            if self._is_skipped(request, day, holidays):
                day += timedelta(days=1)
                continue

            if request.usecontract:
                hours = self._contract_hours(contracts, day, request.enddate)
                if not hours:
                    day += timedelta(days=1)
                    continue
                start = CONTRACT_DAY_START
                end = (datetime.combine(day, start) + timedelta(minutes=round(hours * 60))).time()
            else:
                start = request.starttime or time(0, 0)
                end = request.endtime or time(0, 0)

            entry = EntryModel(
                user=user,
                ticket="",
                description=preset.description or "",
                day=day,
                start=start,
                end=end,
                entry_class=int(EntryClass.DAYBREAK),
                customer=preset.customer,
                project=preset.project,
                activity=preset.activity,
            )
            entry.calculate_duration()
            self.entry_repository.save(entry)
            added += 1

            calculate_classes(self.entry_repository, user.id, day)
            self.record_event(EntryCreated(entry=entry, user_id=user.id))
            day += timedelta(days=1)

        await self._publish_events()
        self._finish()
        return {"success": True, "added": added, "message": self._message(added, request, contracts)}

    @staticmethod
    def _is_skipped(request: BulkEntryRequestDTO, day: date, holidays) -> bool:
        if request.skipweekend and day.isoweekday() > 5:
            return True
        if request.skipholidays and (day.strftime("%m-%d") in REGULAR_HOLIDAYS or day in holidays):
            return True
        return False

    @staticmethod
    def _contract_hours(contracts, day: date, last_day: date) -> float:
        for contract in contracts:
            if contract.start <= day <= (contract.end or last_day):
                return contract.hours_for(day)
        return 0.0

    @staticmethod
    def _message(added: int, request: BulkEntryRequestDTO, contracts) -> str:
        message = f"{added} entries have been added"
        if contracts:
            first, last = contracts[0], contracts[-1]
            if request.startdate < first.start:
                message += f"<br/>Contract is valid from {first.start.strftime('%d.%m.%Y')}."
            if last.end is not None and request.enddate > last.end:
                message += f"<br/>Contract expired at {last.end.strftime('%d.%m.%Y')}."
        return message


class GetDataUseCase(QueryUseCase):
    """Grid rows of the last working days, or the booked total of a month or year."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository

    async def execute(
        self,
        user: UserModel,
        days: int = 3,
        year: Optional[int] = None,
        month: Optional[int] = None,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
        customer_id: Optional[int] = None,
    ):
        if year:
            entries = self.entry_repository.find_by_date(
                user_id or 0, year, month, project_id, customer_id
            )
            return {"totalWorkTime": self.entry_repository.get_total_duration(entries)}

        return self.entry_repository.get_entries_by_user(user.id, days, bool(user.show_future))


class GetSummaryUseCase(QueryUseCase):
    """Customer, project, activity and ticket totals around one entry."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository
        self.time_calculation = TimeCalculationService()

    async def execute(self, user: UserModel, entry_id: Optional[int]) -> Dict[str, Any]:
        data = empty_summary()
        if not entry_id:
            return data

        self._require(self.entry_repository.find_by_id(entry_id), "Entry", entry_id)
        data = self.entry_repository.get_entry_summary(entry_id, user.id, data)

        project = data.get("project") or {}
        if project.get("estimation"):
            project["quota"] = self.time_calculation.format_quota(
                float(project.get("total") or 0), float(project["estimation"])
            )
        return data


class GetTimeSummaryUseCase(QueryUseCase):
    """Booked time of today, this week and this month."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository

    async def execute(self, user: UserModel) -> Dict[str, Any]:
        return {
            "today": self.entry_repository.get_work_by_user(user.id, Period.DAY),
            "week": self.entry_repository.get_work_by_user(user.id, Period.WEEK),
            "month": self.entry_repository.get_work_by_user(user.id, Period.MONTH),
        }


class GetTicketTimeSummaryUseCase(QueryUseCase):
    """Time booked on a ticket per activity and per user."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository
        self.time_calculation = TimeCalculationService()

    def _timed(self, minutes: int) -> Dict[str, Any]:
        return {"seconds": minutes * 60, "time": self.time_calculation.minutes_to_readable(minutes)}

    async def execute(self, ticket: str) -> Dict[str, Any]:
        users = self.entry_repository.get_users_with_time(ticket)
        if not users:
            raise EntityNotFoundError(
                "Ticket", ticket, "There is no information available about this ticket."
            )

        activities = {}
        for row in self.entry_repository.get_activities_with_time(ticket):
            activities[row["name"] or "No activity"] = self._timed(row["total_time"])

        user_times = {row["username"]: self._timed(row["total_time"]) for row in users}
        total = sum(row["total_time"] for row in users)

        return {
            "total_time": self._timed(total),
            "activities": activities,
            "users": user_times,
        }
