"""
Unit tests for the entry repositories against an in-memory database.
"""

from datetime import date

import pytest

from timetracker.domain.models.enums import Period
from timetracker.domain.repositories.entry_repository import EntryFilter
from timetracker.infrastructure.repositories import OptimizedEntryRepository, SQLAlchemyEntryRepository


class TestEntryPagination:
    """Test cases for filtered and paginated entry queries."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, make_entry, clock):
        self.repository = SQLAlchemyEntryRepository(session, clock)
        self.user_id = seed.developer.id
        # Newest first: day 5 .. day 1
        self.entries = [
            make_entry(day=date(2024, 3, day), ticket=f"WEB-{day}") for day in range(1, 6)
        ]
        self.newest_first = [entry.id for entry in reversed(self.entries)]

    def _ids(self, **criteria):
        return [entry.id for entry in self.repository.find_by_filter_array(EntryFilter(**criteria))]

    def test_newest_first(self):
        """Test the default order."""
        assert self._ids(user=self.user_id) == self.newest_first

    def test_start_offsets_rows(self):
        """Test that start skips rows."""
        assert self._ids(user=self.user_id, max_results=2, start=0) == self.newest_first[:2]
        assert self._ids(user=self.user_id, max_results=2, start=2) == self.newest_first[2:4]

    def test_page_offsets_whole_pages(self):
        """Test that page is multiplied with the page size."""
        assert self._ids(user=self.user_id, max_results=2, page=1) == self.newest_first[2:4]
        assert self._ids(user=self.user_id, max_results=2, page=2) == self.newest_first[4:]

    def test_start_wins_over_page(self):
        """Test that start=0 returns the first rows even with a later page."""
        assert self._ids(user=self.user_id, max_results=2, page=2, start=0) == self.newest_first[:2]

    def test_count_ignores_pagination(self):
        """Test that the count covers all matching rows."""
        entry_filter = EntryFilter(user=self.user_id, max_results=2, page=1)
        assert self.repository.count_by_filter_array(entry_filter) == 5

    def test_filters_are_combined(self):
        """Test that every given criterion narrows the result."""
        assert self._ids(user=self.user_id, ticket="WEB-3") == [self.entries[2].id]
        assert self._ids(
            user=self.user_id, datestart=date(2024, 3, 2), dateend=date(2024, 3, 3)
        ) == [self.entries[2].id, self.entries[1].id]
        assert self._ids(user=self.user_id + 100) == []

    def test_sort_is_whitelisted(self):
        """Test that unknown sort columns fall back to the default order."""
        optimized = OptimizedEntryRepository(self.repository.session, cache=None, clock=self.repository.clock)

        ascending = optimized.find_by_filter_array(EntryFilter(user=self.user_id, sort=[("day", "ASC")]))
        assert [entry.id for entry in ascending] == list(reversed(self.newest_first))

        invalid = optimized.find_by_filter_array(
            EntryFilter(user=self.user_id, sort=[("password", "ASC"), ("day", "SIDEWAYS")])
        )
        assert [entry.id for entry in invalid] == self.newest_first


class TestEntrySummary:
    """Test cases for the summary around an entry, in both repositories."""

    @pytest.fixture(params=["plain", "optimized"])
    def repository(self, request, session, clock, query_cache):
        if request.param == "plain":
            return SQLAlchemyEntryRepository(session, clock)
        return OptimizedEntryRepository(session, query_cache, clock)

    @pytest.fixture(autouse=True)
    def setup(self, seed, make_entry):
        self.seed = seed
        self.make_entry = make_entry
        self.entry = make_entry(start="08:00", end="09:00", ticket="WEB-1")
        make_entry(user=seed.lead, start="09:00", end="09:30", ticket="WEB-1")
        make_entry(start="10:00", end="10:15", activity=seed.meeting)

    def test_totals_per_scope(self, repository):
        """Test entries, totals and own time of each scope."""
        summary = repository.get_entry_summary(self.entry.id, self.seed.developer.id, {})

        assert summary["customer"]["name"] == "Acme"
        assert summary["customer"]["entries"] == 3
        assert summary["customer"]["total"] == 105
        assert summary["customer"]["own"] == 75
        assert summary["project"]["name"] == "Website"
        assert summary["project"]["total"] == 105
        assert summary["activity"]["name"] == "Development"
        assert summary["activity"]["entries"] == 2
        assert summary["activity"]["total"] == 90
        assert summary["ticket"]["name"] == "WEB-1"
        assert summary["ticket"]["total"] == 90
        assert summary["ticket"]["own"] == 60

    def test_own_only_counts_the_given_user(self, repository):
        """Test the summary of the same entry seen by another user."""
        summary = repository.get_entry_summary(self.entry.id, self.seed.lead.id, {})

        assert summary["ticket"]["own"] == 30
        assert summary["customer"]["own"] == 30

    def test_totals_grow_by_new_duration(self, repository, query_cache):
        """Test that booking D more minutes raises every matching total by D."""
        before = repository.get_entry_summary(self.entry.id, self.seed.developer.id, {})
        self.make_entry(start="11:00", end="11:45", ticket="WEB-1")
        query_cache.invalidate_tag("Entry")
        after = repository.get_entry_summary(self.entry.id, self.seed.developer.id, {})

        for scope in ("customer", "project", "activity", "ticket"):
            assert after[scope]["total"] == before[scope]["total"] + 45
            assert after[scope]["own"] == before[scope]["own"] + 45
            assert after[scope]["entries"] == before[scope]["entries"] + 1

    def test_other_users_booking_only_grows_total(self, repository, query_cache):
        """Test that time booked by someone else leaves the own share alone."""
        before = repository.get_entry_summary(self.entry.id, self.seed.developer.id, {})
        self.make_entry(user=self.seed.lead, start="11:00", end="11:40", ticket="WEB-1")
        query_cache.invalidate_entity("Entry", self.seed.lead.id)
        after = repository.get_entry_summary(self.entry.id, self.seed.developer.id, {})

        for scope in ("customer", "project", "activity", "ticket"):
            assert after[scope]["total"] == before[scope]["total"] + 40
            assert after[scope]["own"] == before[scope]["own"]

    def test_unknown_entry_keeps_data(self, repository):
        """Test that a missing entry leaves the given data untouched."""
        assert repository.get_entry_summary(9999, self.seed.developer.id, {"x": 1}) == {"x": 1}

    def test_entry_without_ticket_has_no_ticket_scope(self, repository):
        """Test that the ticket scope is left out for entries without a ticket."""
        entry = self.make_entry(start="12:00", end="13:00")
        summary = repository.get_entry_summary(entry.id, self.seed.developer.id, {})

        assert "ticket" not in summary
        assert "customer" in summary


class TestEntryStatistics:
    """Test cases for the per user statistics and the tracking grid."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, make_entry, clock):
        self.repository = SQLAlchemyEntryRepository(session, clock)
        self.user_id = seed.developer.id
        self.today = make_entry(day=date(2024, 3, 11), start="08:00", end="09:00")
        self.tomorrow = make_entry(day=date(2024, 3, 12), start="08:00", end="08:30")
        self.last_week = make_entry(day=date(2024, 3, 6), start="08:00", end="08:10")
        self.month_start = make_entry(day=date(2024, 3, 1), start="08:00", end="08:45")
        make_entry(user=seed.lead, day=date(2024, 3, 11), start="08:00", end="12:00")

    def test_work_by_user_per_period(self):
        """Test today, this week and this month."""
        assert self.repository.get_work_by_user(self.user_id, Period.DAY) == {"duration": 60, "count": 1}
        assert self.repository.get_work_by_user(self.user_id, Period.WEEK) == {"duration": 90, "count": 2}
        assert self.repository.get_work_by_user(self.user_id, Period.MONTH) == {"duration": 145, "count": 4}

    def test_entries_by_user_cover_working_days(self):
        """Test that three working days from Monday reach back to Wednesday."""
        rows = self.repository.get_entries_by_user(self.user_id, 3)
        ids = [row["entry"]["id"] for row in rows]

        assert ids == [self.tomorrow.id, self.today.id, self.last_week.id]
        assert rows[1]["entry"]["date"] == "11/03/2024"
        assert rows[1]["entry"]["duration"] == "01:00"

    def test_entries_by_user_hide_future(self):
        """Test that future days are left out on request."""
        rows = self.repository.get_entries_by_user(self.user_id, 3, show_future=False)
        assert [row["entry"]["id"] for row in rows] == [self.today.id, self.last_week.id]

    def test_find_by_date(self):
        """Test entries of a month in chronological order."""
        entries = self.repository.find_by_date(self.user_id, 2024, 3)
        assert [entry.id for entry in entries] == [
            self.month_start.id, self.last_week.id, self.today.id, self.tomorrow.id,
        ]
        assert self.repository.find_by_date(self.user_id, 2024, 2) == []
        assert self.repository.get_total_duration(entries) == 145

    def test_find_by_date_whole_year_all_users(self):
        """Test that no user means all users."""
        entries = self.repository.find_by_date(None, 2024)
        assert len(entries) == 5

    def test_calendar_days_use_clock(self):
        """Test that the repository counts from the clock's today."""
        assert self.repository.get_calendar_days_by_work_days(5) == 7

    def test_ticket_times(self, make_entry, seed):
        """Test the per user and per activity times of a ticket."""
        make_entry(start="13:00", end="14:00", ticket="WEB-9")
        make_entry(user=seed.lead, start="13:00", end="13:30", ticket="WEB-9", activity=seed.meeting)

        users = {row["username"]: row["total_time"] for row in self.repository.get_users_with_time("WEB-9")}
        activities = {row["name"]: row["total_time"] for row in self.repository.get_activities_with_time("WEB-9")}

        assert users == {"developer": 60, "lead": 30}
        assert activities == {"Development": 60, "Meeting": 30}


class TestEntriesToSync:
    """Test cases for the entries waiting for the ticket system."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, make_entry, clock):
        self.db = session
        self.seed = seed
        self.make_entry = make_entry
        self.repository = SQLAlchemyEntryRepository(session, clock)

    def _ids(self, max_results=50):
        entries = self.repository.find_by_user_and_ticket_system_to_sync(
            self.seed.developer.id, self.seed.jira.id, max_results
        )
        return [entry.id for entry in entries]

    def test_unsynced_entries_of_the_system_newest_first(self):
        older = self.make_entry(day=date(2024, 3, 8), ticket="WEB-1")
        newer = self.make_entry(ticket="WEB-2")
        synced = self.make_entry(start="11:00", end="12:00", ticket="WEB-3")
        synced.synced_to_ticketsystem = True
        self.db.commit()
        self.make_entry(project=self.seed.internal)
        self.make_entry(user=self.seed.lead, ticket="WEB-4")

        assert self._ids() == [newer.id, older.id]

    def test_max_results(self):
        """Test that 0 means no limit."""
        for hour in range(8, 12):
            self.make_entry(start=f"{hour:02d}:00", end=f"{hour:02d}:30", ticket="WEB-1")

        assert len(self._ids(max_results=2)) == 2
        assert len(self._ids(max_results=0)) == 4


class TestOptimizedEntryRepositoryCache:
    """Test cases for the cached read paths."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, make_entry, clock, query_cache):
        self.cache = query_cache
        self.make_entry = make_entry
        self.repository = OptimizedEntryRepository(session, query_cache, clock)
        self.user_id = seed.developer.id
        make_entry(start="08:00", end="09:00")

    def test_work_stats_are_cached_until_invalidated(self):
        """Test that stale statistics are served until the user's tag is invalidated."""
        assert self.repository.get_work_by_user(self.user_id)["duration"] == 60

        self.make_entry(start="10:00", end="10:30")
        assert self.repository.get_work_by_user(self.user_id)["duration"] == 60

        self.cache.invalidate_entity("Entry", self.user_id)
        assert self.repository.get_work_by_user(self.user_id)["duration"] == 90

    def test_grid_is_cached_per_user(self, seed):
        """Test that invalidating another user keeps the cached grid."""
        assert len(self.repository.get_entries_by_user(self.user_id)) == 1

        self.make_entry(start="10:00", end="10:30")
        self.cache.invalidate_tag(self.cache.entity_tag("Entry", seed.lead.id))
        assert len(self.repository.get_entries_by_user(self.user_id)) == 1

        self.cache.invalidate_entity("Entry", self.user_id)
        assert len(self.repository.get_entries_by_user(self.user_id)) == 2
