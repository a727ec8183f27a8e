"""
Ticket system repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List

from sqlalchemy import asc

from timetracker.infrastructure.db.models import ProjectModel, TicketSystemModel
from .base_repository import SQLAlchemyRepository


def ticket_system_to_array(ticket_system: TicketSystemModel) -> Dict[str, Any]:
    ticket_type = ticket_system.type
    return {
        "id": ticket_system.id,
        "name": ticket_system.name,
        "type": ticket_type.value if hasattr(ticket_type, "value") else ticket_type,
        "bookTime": bool(ticket_system.book_time),
        "url": ticket_system.url or "",
        "ticketUrl": ticket_system.ticketurl or "",
        "login": ticket_system.login or "",
        "publicKey": ticket_system.public_key or "",
        "oauthConsumerKey": ticket_system.oauth_consumer_key or "",
    }


class SQLAlchemyTicketSystemRepository(SQLAlchemyRepository[TicketSystemModel]):
    """SQLAlchemy implementation of ticket system repository."""

    model = TicketSystemModel
    entity_name = "Ticket system"
    references = (
        (ProjectModel, ProjectModel.ticket_system_id),
    )

    def get_all_ticket_systems(self) -> List[Dict[str, Any]]:
        ticket_systems = self.session.query(TicketSystemModel).order_by(asc(TicketSystemModel.name)).all()
        return [{"ticketSystem": ticket_system_to_array(ts)} for ts in ticket_systems]

    def find_booking_systems(self) -> List[TicketSystemModel]:
        """JIRA systems that accept work logs."""
        return self.session.query(TicketSystemModel).filter(
            TicketSystemModel.book_time.is_(True)
        ).all()
