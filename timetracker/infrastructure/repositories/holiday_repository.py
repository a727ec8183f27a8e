"""
Holiday repository implementation using SQLAlchemy.
"""

import calendar
from datetime import date
from typing import List, Set

from sqlalchemy import and_, asc

from timetracker.infrastructure.db.models import HolidayModel
from .base_repository import SQLAlchemyRepository


class SQLAlchemyHolidayRepository(SQLAlchemyRepository[HolidayModel]):
    """SQLAlchemy implementation of holiday repository."""

    model = HolidayModel
    entity_name = "Holiday"

    def find_by_month(self, year: int, month: int) -> List[HolidayModel]:
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        return self.session.query(HolidayModel).filter(
            and_(HolidayModel.day >= first_day, HolidayModel.day <= last_day)
        ).order_by(asc(HolidayModel.day)).all()

    def find_days_between(self, first_day: date, last_day: date) -> Set[date]:
        rows = self.session.query(HolidayModel.day).filter(
            and_(HolidayModel.day >= first_day, HolidayModel.day <= last_day)
        ).all()
        return {row.day for row in rows}
