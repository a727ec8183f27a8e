"""
Entry repository implementation using SQLAlchemy.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, asc, case, desc, func, literal, select, union_all
from sqlalchemy.orm import Query, Session, joinedload

from timetracker.domain.models.enums import Period
from timetracker.domain.repositories.entry_repository import (
    EntryFilter,
    EntryRepository as EntryRepositoryInterface,
)
from timetracker.domain.services.clock import Clock, get_clock
from timetracker.domain.services.work_day_service import calendar_days_for_work_days
from timetracker.infrastructure.db.models import (
    ActivityModel,
    CustomerModel,
    EntryModel,
    ProjectModel,
    TeamModel,
    UserModel,
)
from timetracker.infrastructure.mappers.entry_mapper import EntryMapper

logger = logging.getLogger(__name__)


class SQLAlchemyEntryRepository(EntryRepositoryInterface):
    """SQLAlchemy implementation of entry repository."""

    SORTABLE_COLUMNS = {
        "id": EntryModel.id,
        "day": EntryModel.day,
        "start": EntryModel.start,
        "end": EntryModel.end,
        "duration": EntryModel.duration,
        "ticket": EntryModel.ticket,
        "user": EntryModel.user_id,
        "customer": EntryModel.customer_id,
        "project": EntryModel.project_id,
        "activity": EntryModel.activity_id,
    }

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock or get_clock()
        self.mapper = EntryMapper()
        self.model = EntryModel

    def _base_query(self) -> Query:
        return self.session.query(EntryModel).options(
            joinedload(EntryModel.user),
            joinedload(EntryModel.customer),
            joinedload(EntryModel.project).joinedload(ProjectModel.ticket_system),
            joinedload(EntryModel.activity),
        )

    def find_by_id(self, entry_id: int) -> Optional[EntryModel]:
        """Get entry by ID."""
        if not entry_id:
            return None
        return self._base_query().filter(EntryModel.id == entry_id).first()

    def save(self, entry: EntryModel) -> EntryModel:
        """Persist a new or changed entry."""
        self.session.add(entry)
        self.session.flush()
        return entry

    def delete(self, entry: EntryModel) -> None:
        self.session.delete(entry)
        self.session.flush()

    def get_calendar_days_by_work_days(self, work_days: int) -> int:
        """Calendar days covering the given number of working days up to today."""
        return calendar_days_for_work_days(work_days, self.clock.today())

    # Filtered queries

    def _apply_filters(self, query: Query, filters: EntryFilter) -> Query:
        """AND every given criterion onto the query."""
        conditions = []

        if filters.customer:
            conditions.append(EntryModel.customer_id == filters.customer)
        if filters.project:
            conditions.append(EntryModel.project_id == filters.project)
        if filters.activity:
            conditions.append(EntryModel.activity_id == filters.activity)
        if filters.user:
            conditions.append(EntryModel.user_id == filters.user)
        if filters.visibility_user:
            conditions.append(EntryModel.user_id == filters.visibility_user)
        if filters.team:
            conditions.append(
                EntryModel.user.has(UserModel.teams.any(TeamModel.id == filters.team))
            )
        if filters.datestart:
            conditions.append(EntryModel.day >= filters.datestart)
        if filters.dateend:
            conditions.append(EntryModel.day <= filters.dateend)
        if filters.ticket:
            conditions.append(EntryModel.ticket.like(filters.ticket))
        if filters.description:
            conditions.append(EntryModel.description.icontains(filters.description, autoescape=True))

        if conditions:
            query = query.filter(and_(*conditions))
        return query

    def _apply_sort(
        self,
        query: Query,
        sort: Optional[Iterable[Tuple[str, str]]],
        default: Sequence = (),
    ) -> Query:
        """Order by whitelisted columns only, directions other than ASC/DESC are ignored."""
        clauses = []
        for column_name, direction in sort or ():
            column = self.SORTABLE_COLUMNS.get(column_name)
            direction = (direction or "").upper()
            if column is None or direction not in ("ASC", "DESC"):
                logger.debug(f"Ignoring invalid sort {column_name} {direction}")
                continue
            clauses.append(asc(column) if direction == "ASC" else desc(column))

        if not clauses:
            clauses = list(default)
        return query.order_by(*clauses)

    def query_by_filter_array(self, filters: EntryFilter) -> Query:
        """
        Build the filtered entry query.

        Ordered newest first. With max_results the result is capped and
        offset by `start`, falling back to page * max_results.
        """
        query = self._apply_filters(self._base_query(), filters)
        query = query.order_by(desc(EntryModel.day), desc(EntryModel.start), desc(EntryModel.id))

        if filters.max_results and filters.max_results > 0:
            query = query.limit(filters.max_results)
            if filters.offset:
                query = query.offset(filters.offset)

        return query

    def find_by_filter_array(self, filters: EntryFilter) -> List[EntryModel]:
        return self.query_by_filter_array(filters).all()

    def count_by_filter_array(self, filters: EntryFilter) -> int:
        query = self._apply_filters(self.session.query(func.count(EntryModel.id)), filters)
        return query.scalar() or 0

    def find_by_recent_days_of_user(self, user_id: int, days: int = 3) -> List[EntryModel]:
        """Entries of the last working days, oldest first."""
        from_date = self.clock.today() - timedelta(days=self.get_calendar_days_by_work_days(days))
        return self._base_query().filter(
            and_(
                EntryModel.user_id == user_id,
                EntryModel.day >= from_date,
            )
        ).order_by(asc(EntryModel.day), asc(EntryModel.start)).all()

    def get_entries_by_user(self, user_id: int, days: int = 3, show_future: bool = True) -> List[Dict[str, Any]]:
        """Rows of the tracking grid for the last working days, newest first."""
        today = self.clock.today()
        from_date = today - timedelta(days=self.get_calendar_days_by_work_days(days))

        query = self._base_query().filter(
            and_(
                EntryModel.user_id == user_id,
                EntryModel.day >= from_date,
            )
        )
        if not show_future:
            query = query.filter(EntryModel.day <= today)

        entries = query.order_by(desc(EntryModel.day), desc(EntryModel.start)).all()
        return [{"entry": self.mapper.to_grid_row(entry)} for entry in entries]

    def find_by_date(
        self,
        user_id: Optional[int],
        year: int,
        month: Optional[int] = None,
        project_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        sort: Optional[Iterable[Tuple[str, str]]] = None,
    ) -> List[EntryModel]:
        """Entries of a month, or a whole year when month is not given."""
        if month:
            first_day = date(year, month, 1)
            last_day = date(year, month, calendar.monthrange(year, month)[1])
        else:
            first_day = date(year, 1, 1)
            last_day = date(year, 12, 31)

        query = self._base_query().filter(
            and_(EntryModel.day >= first_day, EntryModel.day <= last_day)
        )
        if user_id:
            query = query.filter(EntryModel.user_id == user_id)
        if project_id:
            query = query.filter(EntryModel.project_id == project_id)
        if customer_id:
            query = query.filter(EntryModel.customer_id == customer_id)

        query = self._apply_sort(query, sort, default=(asc(EntryModel.day), asc(EntryModel.start)))
        return query.all()

    def find_by_day(self, user_id: int, day: date) -> List[EntryModel]:
        return self._base_query().filter(
            and_(EntryModel.user_id == user_id, EntryModel.day == day)
        ).order_by(asc(EntryModel.start), asc(EntryModel.end), asc(EntryModel.id)).all()

    def find_by_user_and_ticket_system_to_sync(
        self,
        user_id: int,
        ticket_system_id: int,
        max_results: int = 50,
    ) -> List[EntryModel]:
        """Entries of projects booking into the ticket system that were not synced yet."""
        query = self._base_query().join(EntryModel.project).filter(
            and_(
                EntryModel.user_id == user_id,
                ProjectModel.ticket_system_id == ticket_system_id,
                EntryModel.synced_to_ticketsystem.is_(False),
            )
        ).order_by(desc(EntryModel.day), desc(EntryModel.start))

        if max_results:
            query = query.limit(max_results)
        return query.all()

    # Aggregates

    def _summary_columns(self, scope: str, name_column, estimation_column, user_id: int):
        return (
            literal(scope).label("scope"),
            func.max(name_column).label("name"),
            func.count(EntryModel.id).label("entries"),
            func.coalesce(func.sum(EntryModel.duration), 0).label("total"),
            func.coalesce(
                func.sum(case((EntryModel.user_id == user_id, EntryModel.duration), else_=0)), 0
            ).label("own"),
            estimation_column.label("estimation"),
        )

    def get_entry_summary(self, entry_id: int, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Totals of the customer, project, activity and ticket of an entry.
        One aggregate query per scope, combined with UNION ALL.
        """
        entry = self.find_by_id(entry_id)
        if entry is None:
            return data

        customer = entry.effective_customer
        selects = []

        if customer is not None:
            selects.append(
                select(*self._summary_columns("customer", CustomerModel.name, literal(0), user_id))
                .select_from(EntryModel)
                .outerjoin(CustomerModel, CustomerModel.id == EntryModel.customer_id)
                .where(EntryModel.customer_id == customer.id)
            )

            if entry.project_id:
                selects.append(
                    select(*self._summary_columns(
                        "project", ProjectModel.name, func.max(ProjectModel.estimation), user_id
                    ))
                    .select_from(EntryModel)
                    .outerjoin(ProjectModel, ProjectModel.id == EntryModel.project_id)
                    .where(and_(
                        EntryModel.customer_id == customer.id,
                        EntryModel.project_id == entry.project_id,
                    ))
                )

                if entry.activity_id:
                    selects.append(
                        select(*self._summary_columns("activity", ActivityModel.name, literal(0), user_id))
                        .select_from(EntryModel)
                        .outerjoin(ActivityModel, ActivityModel.id == EntryModel.activity_id)
                        .where(and_(
                            EntryModel.customer_id == customer.id,
                            EntryModel.project_id == entry.project_id,
                            EntryModel.activity_id == entry.activity_id,
                        ))
                    )

        if entry.ticket:
            selects.append(
                select(*self._summary_columns("ticket", EntryModel.ticket, literal(0), user_id))
                .select_from(EntryModel)
                .where(EntryModel.ticket == entry.ticket)
            )

        if not selects:
            return data

        rows = self.session.execute(union_all(*selects)).mappings().all()
        for row in rows:
            data[row["scope"]] = {
                "scope": row["scope"],
                "name": row["name"] or "",
                "entries": int(row["entries"] or 0),
                "total": int(row["total"] or 0),
                "own": int(row["own"] or 0),
                "estimation": int(row["estimation"] or 0),
            }
        return data

    def _period_bounds(self, period: Period) -> Tuple[date, date]:
        today = self.clock.today()
        if period == Period.WEEK:
            monday = today - timedelta(days=today.weekday())
            return monday, monday + timedelta(days=6)
        if period == Period.MONTH:
            last = calendar.monthrange(today.year, today.month)[1]
            return today.replace(day=1), today.replace(day=last)
        return today, today

    def get_work_by_user(self, user_id: int, period: Period = Period.DAY) -> Dict[str, Any]:
        """Booked minutes and number of entries of today, this week or this month."""
        first_day, last_day = self._period_bounds(Period(period))
        count, duration = self.session.query(
            func.count(EntryModel.id),
            func.coalesce(func.sum(EntryModel.duration), 0),
        ).filter(
            and_(
                EntryModel.user_id == user_id,
                EntryModel.day >= first_day,
                EntryModel.day <= last_day,
            )
        ).one()

        return {"duration": int(duration or 0), "count": int(count or 0)}

    def get_activities_with_time(self, ticket: str) -> List[Dict[str, Any]]:
        """Booked minutes per activity on a ticket."""
        rows = self.session.query(
            ActivityModel.name,
            func.coalesce(func.sum(EntryModel.duration), 0).label("total_time"),
        ).select_from(EntryModel).outerjoin(
            ActivityModel, ActivityModel.id == EntryModel.activity_id
        ).filter(
            EntryModel.ticket == ticket
        ).group_by(EntryModel.activity_id, ActivityModel.name).all()

        return [{"name": row.name, "total_time": int(row.total_time)} for row in rows]

    def get_users_with_time(self, ticket: str) -> List[Dict[str, Any]]:
        """Booked minutes per user on a ticket."""
        rows = self.session.query(
            UserModel.username,
            func.coalesce(func.sum(EntryModel.duration), 0).label("total_time"),
        ).select_from(EntryModel).join(
            UserModel, UserModel.id == EntryModel.user_id
        ).filter(
            EntryModel.ticket == ticket
        ).group_by(UserModel.id, UserModel.username).all()

        return [{"username": row.username, "total_time": int(row.total_time)} for row in rows]

    def get_total_duration(self, entries: Iterable[EntryModel]) -> int:
        return sum(entry.duration or 0 for entry in entries)
