"""
Customer repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List

from sqlalchemy import asc, or_

from timetracker.infrastructure.db.models import (
    CustomerModel, EntryModel, PresetModel, ProjectModel, TeamModel, UserModel
)
from .base_repository import SQLAlchemyRepository


def customer_to_array(customer: CustomerModel) -> Dict[str, Any]:
    return {
        "id": customer.id,
        "name": customer.name,
        "active": bool(customer.active),
        "global": bool(customer.is_global),
        "teams": [team.id for team in customer.teams],
    }


class SQLAlchemyCustomerRepository(SQLAlchemyRepository[CustomerModel]):
    """SQLAlchemy implementation of customer repository."""

    model = CustomerModel
    entity_name = "Customer"
    references = (
        (ProjectModel, ProjectModel.customer_id),
        (EntryModel, EntryModel.customer_id),
        (PresetModel, PresetModel.customer_id),
    )

    def get_all_customers(self) -> List[Dict[str, Any]]:
        customers = self.session.query(CustomerModel).order_by(asc(CustomerModel.name)).all()
        return [{"customer": customer_to_array(customer)} for customer in customers]

    def find_visible_for_user(self, user_id: int, active_only: bool = True) -> List[CustomerModel]:
        """Global customers plus the customers of the user's teams."""
        query = self.session.query(CustomerModel).filter(
            or_(
                CustomerModel.is_global.is_(True),
                CustomerModel.teams.any(TeamModel.users.any(UserModel.id == user_id)),
            )
        )
        if active_only:
            query = query.filter(CustomerModel.active.is_(True))
        return query.order_by(asc(CustomerModel.name)).all()

    def get_customers_by_user(self, user_id: int) -> List[Dict[str, Any]]:
        return [
            {"customer": {"id": customer.id, "name": customer.name, "active": bool(customer.active)}}
            for customer in self.find_visible_for_user(user_id)
        ]
