"""
Unit tests for the tracking use cases: booking, deleting, bulk entries and summaries.
"""

from datetime import date, time

import pytest

from timetracker.application.dto.entry_dto import BulkEntryRequestDTO, EntrySaveRequestDTO
from timetracker.application.use_cases.entry_use_cases import (
    BulkEntryUseCase,
    DeleteEntryUseCase,
    GetDataUseCase,
    GetSummaryUseCase,
    GetTicketTimeSummaryUseCase,
    GetTimeSummaryUseCase,
    SaveEntryUseCase,
    calculate_classes,
)
from timetracker.domain.models.base import BusinessRuleViolation, EntityNotFoundError, ValidationError
from timetracker.domain.models.enums import EntryClass
from timetracker.infrastructure.db.models import ContractModel, EntryModel, HolidayModel, PresetModel
from timetracker.infrastructure.repositories import (
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyEntryRepository,
    SQLAlchemyHolidayRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
)


class TestCalculateClasses:
    """Test cases for the display classes of a day."""

    def test_pause_daybreak_and_overlap(self, session, seed, make_entry, clock):
        """Test every class on one day."""
        a = make_entry(start="08:00", end="09:00")
        b = make_entry(start="09:00", end="10:00")
        c = make_entry(start="10:30", end="11:00")
        d = make_entry(start="12:00", end="13:00")
        e = make_entry(start="12:30", end="14:00")

        calculate_classes(SQLAlchemyEntryRepository(session, clock), seed.developer.id, a.day)

        assert a.entry_class == EntryClass.PLAIN
        assert b.entry_class == EntryClass.PLAIN | EntryClass.PAUSE
        assert c.entry_class == EntryClass.PLAIN | EntryClass.DAYBREAK
        assert d.entry_class == EntryClass.PLAIN | EntryClass.OVERLAP
        assert e.entry_class == EntryClass.PLAIN | EntryClass.OVERLAP

    def test_other_users_do_not_overlap(self, session, seed, make_entry, clock):
        mine = make_entry(start="08:00", end="09:00")
        make_entry(user=seed.lead, start="08:30", end="09:30")

        calculate_classes(SQLAlchemyEntryRepository(session, clock), seed.developer.id, mine.day)

        assert mine.entry_class == EntryClass.PLAIN


class TestSaveEntryUseCase:
    """Test cases for SaveEntryUseCase."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock, make_entry, jira_integration):
        self.session = session
        self.seed = seed
        self.make_entry = make_entry
        self.jira = jira_integration
        self.use_case = SaveEntryUseCase(
            SQLAlchemyEntryRepository(session, clock),
            SQLAlchemyCustomerRepository(session),
            SQLAlchemyProjectRepository(session),
            SQLAlchemyActivityRepository(session),
        )

    def _request(self, **overrides):
        data = {
            "date": "2024-03-11",
            "start": "09:00",
            "end": "10:30",
            "customer": self.seed.acme.id,
            "project": self.seed.website.id,
            "activity": self.seed.development.id,
            "ticket": "WEB-12",
            "description": "Landing page",
        }
        data.update(overrides)
        return EntrySaveRequestDTO(**data)

    async def _save(self, user=None, **overrides):
        return await self.use_case.execute(user or self.seed.developer, self._request(**overrides))

    @pytest.mark.asyncio
    async def test_new_entry(self):
        """Test booking a new entry."""
        result = (await self._save())["result"]

        assert result["date"] == "11/03/2024"
        assert result["start"] == "09:00"
        assert result["end"] == "10:30"
        assert result["duration"] == 90
        assert result["durationString"] == "01:30"
        assert result["customer"] == self.seed.acme.id
        assert result["ticket"] == "WEB-12"
        assert result["class"] == EntryClass.PLAIN
        assert self.session.query(EntryModel).count() == 1

    @pytest.mark.asyncio
    async def test_new_entry_is_synced_to_jira(self):
        """Test that JIRA bookings are handed to the integration."""
        await self._save()

        entry = self.session.query(EntryModel).one()
        self.jira.save_worklog.assert_called_once_with(entry)

    @pytest.mark.asyncio
    async def test_customer_defaults_to_project_customer(self):
        result = (await self._save(customer=None))["result"]
        assert result["customer"] == self.seed.acme.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,message", [
        ("customer", "Given customer does not exist."),
        ("project", "Given project does not exist."),
        ("activity", "Given activity does not exist."),
    ])
    async def test_unknown_references(self, field, message):
        with pytest.raises(BusinessRuleViolation, match=message):
            await self._save(**{field: 999})

    @pytest.mark.asyncio
    async def test_ticket_with_foreign_prefix(self):
        """Test that tickets must belong to the project's JIRA key."""
        with pytest.raises(BusinessRuleViolation, match="valid prefix"):
            await self._save(ticket="OPS-1")

    @pytest.mark.asyncio
    async def test_ticket_without_number(self):
        with pytest.raises(BusinessRuleViolation, match="valid format"):
            await self._save(ticket="WEB1")

    @pytest.mark.asyncio
    async def test_projects_without_prefix_accept_any_ticket(self):
        result = (await self._save(customer=self.seed.everyone.id, project=self.seed.internal.id, ticket="X1"))
        assert result["result"]["ticket"] == "X1"

    @pytest.mark.asyncio
    async def test_inactive_project(self):
        with pytest.raises(BusinessRuleViolation, match="Project is no longer active."):
            await self._save(project=self.seed.legacy.id, ticket="")

    @pytest.mark.asyncio
    async def test_start_after_end(self):
        with pytest.raises(BusinessRuleViolation, match="Start time cannot be after end time."):
            await self._save(start="11:00", end="10:00")

    @pytest.mark.asyncio
    async def test_update_own_entry(self):
        """Test that saving with an id changes the existing entry."""
        entry = self.make_entry(start="08:00", end="09:00")

        result = (await self._save(id=entry.id, start="08:00", end="08:45"))["result"]

        assert result["duration"] == 45
        assert self.session.query(EntryModel).count() == 1
        assert entry.description == "Landing page"

    @pytest.mark.asyncio
    async def test_moving_an_entry_recalculates_the_old_day(self):
        """Test that the day an entry left is re-evaluated."""
        first = self.make_entry(start="08:00", end="09:00")
        moved = self.make_entry(start="08:30", end="09:30")
        calculate_classes(self.use_case.entry_repository, self.seed.developer.id, first.day)
        assert first.entry_class & EntryClass.OVERLAP

        await self._save(id=moved.id, date="2024-03-12", start="08:30", end="09:30")

        assert first.entry_class == EntryClass.PLAIN

    @pytest.mark.asyncio
    async def test_update_foreign_entry(self):
        """Test that nobody edits the entries of another user."""
        entry = self.make_entry(user=self.seed.lead)

        with pytest.raises(BusinessRuleViolation, match="owned by a different user"):
            await self._save(id=entry.id)

    @pytest.mark.asyncio
    async def test_update_missing_entry(self):
        with pytest.raises(EntityNotFoundError, match="No entry for id."):
            await self._save(id=4711)


class TestDeleteEntryUseCase:
    """Test cases for DeleteEntryUseCase."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock, make_entry, jira_integration):
        self.session = session
        self.seed = seed
        self.make_entry = make_entry
        self.jira = jira_integration
        self.use_case = DeleteEntryUseCase(SQLAlchemyEntryRepository(session, clock))

    @pytest.mark.asyncio
    async def test_delete_recalculates_day(self):
        """Test that the overlap disappears with the deleted entry."""
        kept = self.make_entry(start="08:00", end="09:00")
        removed = self.make_entry(start="08:30", end="09:30")
        calculate_classes(self.use_case.entry_repository, self.seed.developer.id, kept.day)

        assert await self.use_case.execute(self.seed.developer, removed.id) == {"success": True}

        assert self.session.query(EntryModel).count() == 1
        assert kept.entry_class == EntryClass.PLAIN

    @pytest.mark.asyncio
    async def test_delete_synced_entry_removes_worklog(self):
        entry = self.make_entry(ticket="WEB-1")
        entry.synced_to_ticketsystem = True
        entry.worklog_id = 42

        await self.use_case.execute(self.seed.developer, entry.id)

        self.jira.delete_worklog.assert_called_once_with(entry)

    @pytest.mark.asyncio
    async def test_delete_without_id_is_a_no_op(self):
        assert await self.use_case.execute(self.seed.developer, 0) == {"success": True}

    @pytest.mark.asyncio
    async def test_delete_missing_entry(self):
        with pytest.raises(EntityNotFoundError):
            await self.use_case.execute(self.seed.developer, 4711)

    @pytest.mark.asyncio
    async def test_delete_foreign_entry(self):
        entry = self.make_entry(user=self.seed.lead)

        with pytest.raises(BusinessRuleViolation):
            await self.use_case.execute(self.seed.developer, entry.id)
        assert self.session.query(EntryModel).count() == 1


class TestBulkEntryUseCase:
    """Test cases for BulkEntryUseCase."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock):
        self.session = session
        self.seed = seed
        self.preset = PresetModel(
            name="Vacation",
            customer=seed.everyone,
            project=seed.internal,
            activity=seed.meeting,
            description="Vacation",
        )
        session.add(self.preset)
        session.commit()
        self.use_case = BulkEntryUseCase(
            SQLAlchemyEntryRepository(session, clock),
            SQLAlchemyPresetRepository(session),
            SQLAlchemyContractRepository(session),
            SQLAlchemyHolidayRepository(session),
        )

    async def _run(self, **overrides):
        data = {
            "preset": self.preset.id,
            "startdate": "2024-03-08",
            "enddate": "2024-03-12",
            "starttime": "09:00",
            "endtime": "10:00",
        }
        data.update(overrides)
        return await self.use_case.execute(self.seed.developer, BulkEntryRequestDTO(**data))

    def _days(self):
        return [entry.day for entry in self.session.query(EntryModel).order_by(EntryModel.day).all()]

    def _add_contract(self, start, end=None, hours=8.0):
        contract = ContractModel(user=self.seed.developer, start=start, end=end)
        for weekday in range(1, 6):
            setattr(contract, f"hours_{weekday}", hours)
        self.session.add(contract)
        self.session.commit()
        return contract

    @pytest.mark.asyncio
    async def test_every_day_of_range(self):
        result = await self._run()

        assert result["added"] == 5
        assert result["message"] == "5 entries have been added"

    @pytest.mark.asyncio
    async def test_skip_weekend(self):
        """Test that Saturday and Sunday are left out."""
        result = await self._run(skipweekend="1")

        assert result["added"] == 3
        assert self._days() == [date(2024, 3, 8), date(2024, 3, 11), date(2024, 3, 12)]

    @pytest.mark.asyncio
    async def test_skip_holidays(self):
        """Test fixed public holidays and holidays from the table."""
        self.session.add(HolidayModel(day=date(2024, 5, 2), name="Company day"))
        self.session.commit()

        result = await self._run(startdate="2024-04-30", enddate="2024-05-03", skipholidays=True)

        assert result["added"] == 2
        assert self._days() == [date(2024, 4, 30), date(2024, 5, 3)]

    @pytest.mark.asyncio
    async def test_entries_use_preset(self):
        await self._run(startdate="2024-03-11", enddate="2024-03-11")

        entry = self.session.query(EntryModel).one()
        assert entry.project_id == self.seed.internal.id
        assert entry.activity_id == self.seed.meeting.id
        assert entry.description == "Vacation"
        assert entry.duration == 60

    @pytest.mark.asyncio
    async def test_contract_hours(self):
        """Test that the contract defines the booked time from 08:00."""
        self._add_contract(date(2024, 1, 1))

        await self._run(startdate="2024-03-11", enddate="2024-03-11", usecontract=True, starttime="", endtime="")

        entry = self.session.query(EntryModel).one()
        assert entry.start == time(8, 0)
        assert entry.end == time(16, 0)
        assert entry.duration == 480

    @pytest.mark.asyncio
    async def test_days_outside_contract(self):
        """Test that days before the contract start are left out and reported."""
        self._add_contract(date(2024, 3, 11))

        result = await self._run(usecontract=True)

        assert result["added"] == 2
        assert result["message"] == "2 entries have been added<br/>Contract is valid from 11.03.2024."

    @pytest.mark.asyncio
    async def test_expired_contract(self):
        self._add_contract(date(2024, 1, 1), end=date(2024, 3, 8))

        result = await self._run(usecontract=True)

        assert result["added"] == 1
        assert "<br/>Contract expired at 08.03.2024." in result["message"]

    @pytest.mark.asyncio
    async def test_no_contract(self):
        with pytest.raises(ValidationError, match="No contract for user found"):
            await self._run(usecontract=True)

    @pytest.mark.asyncio
    async def test_unknown_preset(self):
        with pytest.raises(ValidationError, match="Preset not found"):
            await self._run(preset=999)


class TestEntryQueries:
    """Test cases for the read use cases of the tracking page."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock, make_entry):
        self.session = session
        self.seed = seed
        self.repository = SQLAlchemyEntryRepository(session, clock)
        self.entry = make_entry(start="08:00", end="09:00", ticket="WEB-1")
        make_entry(user=seed.lead, start="09:00", end="09:30", ticket="WEB-1", activity=seed.meeting)

    @pytest.mark.asyncio
    async def test_get_data_grid(self):
        rows = await GetDataUseCase(self.repository).execute(self.seed.developer)
        assert [row["entry"]["id"] for row in rows] == [self.entry.id]

    @pytest.mark.asyncio
    async def test_get_data_total_work_time(self):
        """Test the booked total of a month for one user and for everyone."""
        use_case = GetDataUseCase(self.repository)

        mine = await use_case.execute(self.seed.developer, year=2024, month=3, user_id=self.seed.developer.id)
        everyone = await use_case.execute(self.seed.developer, year=2024, month=3)

        assert mine == {"totalWorkTime": 60}
        assert everyone == {"totalWorkTime": 90}

    @pytest.mark.asyncio
    async def test_summary_without_entry(self):
        summary = await GetSummaryUseCase(self.repository).execute(self.seed.developer, None)
        assert summary["customer"]["total"] == 0

    @pytest.mark.asyncio
    async def test_summary_with_estimation_quota(self):
        """Test that estimated projects get the used share of the estimation."""
        self.seed.website.estimation = 180
        self.session.commit()

        summary = await GetSummaryUseCase(self.repository).execute(self.seed.developer, self.entry.id)

        assert summary["project"]["total"] == 90
        assert summary["project"]["quota"] == "50.00%"

    @pytest.mark.asyncio
    async def test_summary_of_missing_entry(self):
        with pytest.raises(EntityNotFoundError):
            await GetSummaryUseCase(self.repository).execute(self.seed.developer, 4711)

    @pytest.mark.asyncio
    async def test_time_summary(self):
        summary = await GetTimeSummaryUseCase(self.repository).execute(self.seed.developer)

        assert summary["today"] == {"duration": 60, "count": 1}
        assert summary["week"]["duration"] == 60
        assert summary["month"]["duration"] == 60

    @pytest.mark.asyncio
    async def test_ticket_time_summary(self):
        summary = await GetTicketTimeSummaryUseCase(self.repository).execute("WEB-1")

        assert summary["total_time"] == {"seconds": 5400, "time": "1h 30m"}
        assert summary["activities"]["Development"]["seconds"] == 3600
        assert summary["activities"]["Meeting"]["time"] == "30m"
        assert summary["users"]["lead"]["seconds"] == 1800

    @pytest.mark.asyncio
    async def test_ticket_time_summary_of_unknown_ticket(self):
        with pytest.raises(EntityNotFoundError, match="no information available"):
            await GetTicketTimeSummaryUseCase(self.repository).execute("WEB-404")
