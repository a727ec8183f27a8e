"""
Activity repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List

from sqlalchemy import asc

from timetracker.infrastructure.db.models import ActivityModel, EntryModel, PresetModel
from .base_repository import SQLAlchemyRepository


class SQLAlchemyActivityRepository(SQLAlchemyRepository[ActivityModel]):
    """SQLAlchemy implementation of activity repository."""

    model = ActivityModel
    entity_name = "Activity"
    references = (
        (EntryModel, EntryModel.activity_id),
        (PresetModel, PresetModel.activity_id),
    )

    def get_activities(self) -> List[Dict[str, Any]]:
        activities = self.session.query(ActivityModel).order_by(asc(ActivityModel.name)).all()
        return [
            {
                "activity": {
                    "id": activity.id,
                    "name": activity.name,
                    "needsTicket": bool(activity.needs_ticket),
                    "factor": float(activity.factor),
                }
            }
            for activity in activities
        ]
