"""
Team repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List

from sqlalchemy import asc

from timetracker.infrastructure.db.models import TeamModel
from .base_repository import SQLAlchemyRepository


class SQLAlchemyTeamRepository(SQLAlchemyRepository[TeamModel]):
    """SQLAlchemy implementation of team repository."""

    model = TeamModel
    entity_name = "Team"

    def get_all_teams(self) -> List[Dict[str, Any]]:
        teams = self.session.query(TeamModel).order_by(asc(TeamModel.name)).all()
        return [
            {"team": {"id": team.id, "name": team.name, "lead_user_id": team.lead_user_id}}
            for team in teams
        ]
