"""
Entry repository with single pass aggregates and cached results.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, desc, func, or_
from sqlalchemy.orm import Session

from timetracker.config import settings
from timetracker.domain.models.enums import Period
from timetracker.domain.repositories.entry_repository import EntryFilter
from timetracker.domain.services.clock import Clock
from timetracker.infrastructure.cache.query_cache import QueryCacheService
from timetracker.infrastructure.db.models import EntryModel
from .entry_repository import SQLAlchemyEntryRepository

logger = logging.getLogger(__name__)

CACHE_PREFIX = "entry_repo"
ENTRY_TAG = "Entry"


class OptimizedEntryRepository(SQLAlchemyEntryRepository):
    """
    Entry repository for the hot read paths.

    The summary is computed with conditional aggregation in one query
    instead of four UNIONed ones. Summary, work statistics and the
    tracking grid are cached; entry events invalidate them by tag.
    """

    def __init__(self, session: Session, cache: QueryCacheService, clock: Optional[Clock] = None):
        super().__init__(session, clock)
        self.cache = cache

    def _user_tag(self, user_id: int) -> str:
        return self.cache.entity_tag(ENTRY_TAG, user_id)

    def get_entry_summary(self, entry_id: int, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        key = f"{CACHE_PREFIX}_summary_{entry_id}_{user_id}"
        summary = self.cache.remember(
            key,
            lambda: self._compute_entry_summary(entry_id, user_id),
            ttl=settings.cache_ttl,
            tags=(ENTRY_TAG,),
        )
        data.update(summary)
        return data

    def _compute_entry_summary(self, entry_id: int, user_id: int) -> Dict[str, Any]:
        entry = self.find_by_id(entry_id)
        if entry is None:
            return {}

        customer = entry.effective_customer
        project = entry.project
        activity = entry.activity
        own = EntryModel.user_id == user_id

        # scope -> (condition, name, estimation)
        scopes = {}
        if customer is not None:
            in_customer = EntryModel.customer_id == customer.id
            scopes["customer"] = (in_customer, customer.name, 0)

            if project is not None:
                in_project = and_(in_customer, EntryModel.project_id == project.id)
                name = project.name
                if project.estimation:
                    name = f"{project.name} (Est: {project.estimation})"
                scopes["project"] = (in_project, name, project.estimation or 0)

                if activity is not None:
                    in_activity = and_(in_project, EntryModel.activity_id == activity.id)
                    scopes["activity"] = (in_activity, activity.name, 0)

        if entry.ticket:
            scopes["ticket"] = (EntryModel.ticket == entry.ticket, entry.ticket, 0)

        if not scopes:
            return {}

        columns = []
        for condition, _, _ in scopes.values():
            columns.extend([
                func.count(case((condition, 1))),
                func.coalesce(func.sum(case((condition, EntryModel.duration), else_=0)), 0),
                func.coalesce(func.sum(case((and_(condition, own), EntryModel.duration), else_=0)), 0),
            ])

        conditions = [condition for condition, _, _ in scopes.values()]
        row = tuple(self.session.query(*columns).filter(or_(*conditions)).one())

        summary = {}
        for index, (scope, (_, name, estimation)) in enumerate(scopes.items()):
            entries, total, own_total = row[index * 3:index * 3 + 3]
            summary[scope] = {
                "scope": scope,
                "name": name or "",
                "entries": int(entries or 0),
                "total": int(total or 0),
                "own": int(own_total or 0),
                "estimation": int(estimation or 0),
            }
        return summary

    def get_work_by_user(self, user_id: int, period: Period = Period.DAY) -> Dict[str, Any]:
        period = Period(period)
        key = f"{CACHE_PREFIX}_work_{user_id}_{period.value}"
        return self.cache.remember(
            key,
            lambda: super(OptimizedEntryRepository, self).get_work_by_user(user_id, period),
            ttl=settings.work_stats_cache_ttl,
            tags=(self._user_tag(user_id),),
        )

    def get_entries_by_user(self, user_id: int, days: int = 3, show_future: bool = True) -> List[Dict[str, Any]]:
        key = f"{CACHE_PREFIX}_recent_{user_id}_{days}_{int(show_future)}"
        return self.cache.remember(
            key,
            lambda: super(OptimizedEntryRepository, self).get_entries_by_user(user_id, days, show_future),
            ttl=settings.cache_ttl,
            tags=(self._user_tag(user_id),),
        )

    def find_by_filter_array(self, filters: EntryFilter) -> List[EntryModel]:
        """Filtered entries with an optional caller supplied sort."""
        if not filters.sort:
            return super().find_by_filter_array(filters)

        query = self._apply_filters(self._base_query(), filters)
        query = self._apply_sort(
            query,
            filters.sort,
            default=(desc(EntryModel.day), desc(EntryModel.start)),
        )
        if filters.max_results and filters.max_results > 0:
            query = query.limit(filters.max_results)
            if filters.offset:
                query = query.offset(filters.offset)
        return query.all()
