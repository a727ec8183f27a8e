"""
Unit tests for working day arithmetic and the clock.
"""

from datetime import date, datetime

from timetracker.domain.services.clock import FrozenClock, SystemClock
from timetracker.domain.services.work_day_service import (
    MAX_WORK_DAYS, calendar_days_for_work_days, is_working_day
)

MONDAY = date(2024, 3, 11)
WEDNESDAY = date(2024, 3, 13)


class TestWorkDays:
    """Test cases for calendar days covering working days."""

    def test_is_working_day(self):
        """Test Monday to Friday."""
        assert is_working_day(MONDAY)
        assert is_working_day(date(2024, 3, 15))
        assert not is_working_day(date(2024, 3, 16))
        assert not is_working_day(date(2024, 3, 17))

    def test_five_working_days_from_monday(self):
        """Test that the weekend is walked over without using up working days."""
        assert calendar_days_for_work_days(5, MONDAY) == 7

    def test_one_working_day_from_monday_reaches_friday(self):
        """Test a single day spanning the weekend."""
        assert calendar_days_for_work_days(1, MONDAY) == 3

    def test_one_working_day_midweek(self):
        """Test a single day in the middle of the week."""
        assert calendar_days_for_work_days(1, WEDNESDAY) == 1

    def test_no_working_days(self):
        """Test zero and negative input."""
        assert calendar_days_for_work_days(0, MONDAY) == 0
        assert calendar_days_for_work_days(-3, MONDAY) == 0

    def test_huge_ranges_are_clamped(self):
        """Test that absurd ranges stop at the upper bound instead of leaving the calendar."""
        clamped = calendar_days_for_work_days(MAX_WORK_DAYS, MONDAY)

        assert calendar_days_for_work_days(1000000, MONDAY) == clamped
        assert MONDAY.toordinal() > clamped

    def test_result_grows_with_working_days(self):
        """Test that more working days always need more calendar days."""
        for today in (MONDAY, WEDNESDAY, date(2024, 3, 16)):
            previous = calendar_days_for_work_days(0, today)
            for work_days in range(1, 30):
                current = calendar_days_for_work_days(work_days, today)
                assert current > previous
                previous = current


class TestClock:
    """Test cases for the clock implementations."""

    def test_frozen_clock(self):
        """Test that the frozen clock always reports the same moment."""
        clock = FrozenClock(datetime(2024, 3, 11, 10, 0))

        assert clock.now() == datetime(2024, 3, 11, 10, 0)
        assert clock.today() == MONDAY

    def test_frozen_clock_from_date(self):
        """Test that a plain date is taken as midnight."""
        clock = FrozenClock(MONDAY)
        assert clock.now() == datetime(2024, 3, 11, 0, 0)

    def test_frozen_clock_can_be_moved(self):
        """Test moving the frozen clock."""
        clock = FrozenClock(MONDAY)
        clock.set(datetime(2024, 4, 1, 8, 0))
        assert clock.today() == date(2024, 4, 1)

    def test_system_clock(self):
        """Test that the system clock follows the system time."""
        before = datetime.now()
        now = SystemClock().now()
        assert before <= now <= datetime.now()
