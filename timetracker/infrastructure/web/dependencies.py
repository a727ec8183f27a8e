"""
Dependencies shared by the routers.
One session per request, every repository of a request works on it.
"""

import json
from typing import Any, Dict

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from timetracker.domain.services.clock import get_clock
from timetracker.infrastructure.cache.query_cache import get_query_cache
from timetracker.infrastructure.db.database import get_db_session
from timetracker.infrastructure.integrations.jira import JiraIntegrationService, SubticketSyncService
from timetracker.infrastructure.repositories import (
    OptimizedEntryRepository,
    SQLAlchemyActivityRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyHolidayRepository,
    SQLAlchemyPresetRepository,
    SQLAlchemyProjectRepository,
    SQLAlchemyTeamRepository,
    SQLAlchemyTicketSystemRepository,
    SQLAlchemyUserRepository,
)


async def request_payload(request: Request) -> Dict[str, Any]:
    """
    Body parameters of a POST request.
    The frontend posts forms, newer clients send JSON; query parameters fill the gaps.
    """
    data: Dict[str, Any] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        body = await request.body()
        if body:
            parsed = json.loads(body)
            if not isinstance(parsed, dict):
                raise ValueError("The request body must be a JSON object")
            data.update(parsed)
    elif "form" in content_type:
        form = await request.form()
        for key in form.keys():
            values = form.getlist(key)
            name = key[:-2] if key.endswith("[]") else key
            data[name] = values if len(values) > 1 or key.endswith("[]") else values[0]
    return data


def get_entry_repository(session: Session = Depends(get_db_session)) -> OptimizedEntryRepository:
    """Dependency to get the cached entry repository."""
    return OptimizedEntryRepository(session, get_query_cache(), get_clock())


def get_customer_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyCustomerRepository:
    return SQLAlchemyCustomerRepository(session)


def get_project_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyProjectRepository:
    return SQLAlchemyProjectRepository(session)


def get_activity_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyActivityRepository:
    return SQLAlchemyActivityRepository(session)


def get_user_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(session)


def get_team_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyTeamRepository:
    return SQLAlchemyTeamRepository(session)


def get_contract_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyContractRepository:
    return SQLAlchemyContractRepository(session)


def get_preset_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyPresetRepository:
    return SQLAlchemyPresetRepository(session)


def get_holiday_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyHolidayRepository:
    return SQLAlchemyHolidayRepository(session)


def get_ticket_system_repository(session: Session = Depends(get_db_session)) -> SQLAlchemyTicketSystemRepository:
    return SQLAlchemyTicketSystemRepository(session)


def get_jira_integration_service(session: Session = Depends(get_db_session)) -> JiraIntegrationService:
    return JiraIntegrationService(session)


def get_subticket_sync_service(session: Session = Depends(get_db_session)) -> SubticketSyncService:
    return SubticketSyncService(session)
