"""
User repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import asc

from timetracker.infrastructure.db.models import (
    ContractModel, EntryModel, TeamModel, UserModel, UserTicketSystemModel
)
from .base_repository import SQLAlchemyRepository


def user_to_array(user: UserModel) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "type": user.type.value if hasattr(user.type, "value") else user.type,
        "abbr": user.abbr,
        "locale": user.locale,
        "teams": [team.id for team in user.teams],
    }


class SQLAlchemyUserRepository(SQLAlchemyRepository[UserModel]):
    """SQLAlchemy implementation of user repository."""

    model = UserModel
    entity_name = "User"
    references = (
        (EntryModel, EntryModel.user_id),
        (ContractModel, ContractModel.user_id),
        (TeamModel, TeamModel.lead_user_id),
    )

    def find_by_username(self, username: str) -> Optional[UserModel]:
        return self.session.query(UserModel).filter(UserModel.username == username).first()

    def find_by_abbr(self, abbr: str) -> Optional[UserModel]:
        return self.session.query(UserModel).filter(UserModel.abbr == abbr).first()

    def get_all_users(self) -> List[Dict[str, Any]]:
        users = self.session.query(UserModel).order_by(asc(UserModel.username)).all()
        return [{"user": user_to_array(user)} for user in users]

    def get_users(self, current_user_id: int) -> List[Dict[str, Any]]:
        """All users by name, the current user first."""
        users = self.session.query(UserModel).order_by(asc(UserModel.username)).all()
        current = [user for user in users if user.id == current_user_id]
        others = [user for user in users if user.id != current_user_id]
        return [
            {"user": {"id": user.id, "username": user.username, "type": user_to_array(user)["type"], "abbr": user.abbr}}
            for user in current + others
        ]

    def get_ticket_system_token(self, user_id: int, ticket_system_id: int) -> Optional[UserTicketSystemModel]:
        return self.session.query(UserTicketSystemModel).filter(
            UserTicketSystemModel.user_id == user_id,
            UserTicketSystemModel.ticket_system_id == ticket_system_id,
        ).first()
