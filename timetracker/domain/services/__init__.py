"""
Domain services for the time tracker.
This module exports the stateless services holding date and duration logic.
"""

from .time_calculation_service import TimeCalculationService
from .work_day_service import calendar_days_for_work_days, is_working_day
from .clock import Clock, SystemClock, FrozenClock, get_clock

__all__ = [
    "TimeCalculationService",
    "calendar_days_for_work_days",
    "is_working_day",
    "Clock",
    "SystemClock",
    "FrozenClock",
    "get_clock",
]
