"""Working day arithmetic."""

from datetime import date, timedelta

# About 38 years
MAX_WORK_DAYS = 10000


def is_working_day(day: date) -> bool:
    """Monday to Friday."""
    return day.isoweekday() < 6


def calendar_days_for_work_days(work_days: int, today: date) -> int:
    """
    Number of calendar days to walk back from today to cover the given
    number of working days. Weekend days are counted but do not use up
    a working day. Requests beyond MAX_WORK_DAYS are clamped.
    """
    if work_days <= 0:
        return 0
    work_days = min(work_days, MAX_WORK_DAYS)

    days = 0
    current = today
    while work_days > 0:
        days += 1
        current -= timedelta(days=1)
        if is_working_day(current):
            work_days -= 1

    return days
