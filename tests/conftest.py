"""
Shared fixtures: an in-memory database with a small data set, a frozen
clock, an isolated query cache and an API client authenticated per user.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")

from datetime import datetime, time
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timetracker.domain.events.base import get_event_dispatcher
from timetracker.domain.models.enums import TicketSystemType, UserType
from timetracker.domain.services import clock as clock_module
from timetracker.domain.services.clock import FrozenClock
from timetracker.infrastructure.auth.jwt_handler import JWTHandler
from timetracker.infrastructure.cache import query_cache as query_cache_module
from timetracker.infrastructure.cache.backends import InMemoryCacheBackend
from timetracker.infrastructure.cache.query_cache import QueryCacheService
from timetracker.infrastructure.db.database import Base, get_db_session
from timetracker.infrastructure.db.models import (
    ActivityModel,
    CustomerModel,
    EntryModel,
    ProjectModel,
    TeamModel,
    TicketSystemModel,
    UserModel,
)
from timetracker.infrastructure.events.entry_event_handlers import (
    EntryCacheInvalidationHandler,
    JiraAutoSyncHandler,
)
from timetracker.infrastructure.events.event_setup import setup_event_handlers
from timetracker.infrastructure.integrations.jira import JiraHttpClient, SubticketSyncService
from timetracker.main import create_application
from timetracker.infrastructure.web.dependencies import get_subticket_sync_service

# Monday
NOW = datetime(2024, 3, 11, 10, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def clock(monkeypatch):
    clock = FrozenClock(NOW)
    monkeypatch.setattr(clock_module, "_default_clock", clock)
    return clock


@pytest.fixture
def query_cache(monkeypatch):
    cache = QueryCacheService(InMemoryCacheBackend())
    monkeypatch.setattr(query_cache_module, "_query_cache", cache)
    return cache


@pytest.fixture
def jira_integration():
    """Stands in for the JIRA integration of the auto sync handler."""
    integration = Mock()
    integration.save_worklog.return_value = True
    integration.delete_worklog.return_value = True
    return integration


@pytest.fixture(autouse=True)
def event_handlers(query_cache, jira_integration):
    setup_event_handlers(
        cache_handler=EntryCacheInvalidationHandler(query_cache),
        jira_handler=JiraAutoSyncHandler(integration_factory=lambda session: jira_integration),
    )
    yield get_event_dispatcher()
    get_event_dispatcher().clear_handlers()
    get_event_dispatcher().clear_event_log()


@pytest.fixture
def seed(session):
    """
    Two users in team Alpha, a team customer and a global one,
    an active JIRA project, a global project and an inactive project.
    """
    developer = UserModel(username="developer", abbr="DEV", type=UserType.DEV)
    lead = UserModel(username="lead", abbr="LEA", type=UserType.PL)
    team = TeamModel(name="Alpha", lead_user=lead)
    team.users.extend([developer, lead])

    jira = TicketSystemModel(
        name="Jira",
        type=TicketSystemType.JIRA,
        book_time=True,
        url="https://jira.example.com",
        ticketurl="https://jira.example.com/browse/%s",
        login="bot",
        password="secret",
    )

    acme = CustomerModel(name="Acme", active=True, is_global=False)
    acme.teams.append(team)
    everyone = CustomerModel(name="Everyone", active=True, is_global=True)

    website = ProjectModel(name="Website", customer=acme, active=True, jira_id="WEB", ticket_system=jira)
    internal = ProjectModel(name="Internal", customer=everyone, active=True, is_global=True)
    legacy = ProjectModel(name="Legacy", customer=acme, active=False)

    development = ActivityModel(name="Development")
    meeting = ActivityModel(name="Meeting")

    session.add_all([
        developer, lead, team, jira, acme, everyone,
        website, internal, legacy, development, meeting,
    ])
    session.commit()

    return SimpleNamespace(
        developer=developer,
        lead=lead,
        team=team,
        jira=jira,
        acme=acme,
        everyone=everyone,
        website=website,
        internal=internal,
        legacy=legacy,
        development=development,
        meeting=meeting,
    )


@pytest.fixture
def make_entry(session, seed):
    """Factory for committed entries, by default one hour on Website for the developer."""

    def make(
        user=None,
        day=NOW.date(),
        start="09:00",
        end="10:00",
        project=None,
        activity=None,
        ticket="",
        description="",
    ):
        project = project or seed.website
        entry = EntryModel(
            user=user or seed.developer,
            day=day,
            start=time.fromisoformat(start),
            end=time.fromisoformat(end),
            customer=project.customer,
            project=project,
            activity=activity or seed.development,
            ticket=ticket,
            description=description,
        )
        entry.calculate_duration()
        session.add(entry)
        session.commit()
        return entry

    return make


@pytest.fixture
def jira_http():
    """requests session behind every JIRA client the API builds, no request leaves the test."""
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.auth = None
    return session


@pytest.fixture
def app(session, clock, query_cache, jira_http):
    application = create_application()

    def client_factory(ticket_system, token):
        return JiraHttpClient(
            ticket_system, access_token=token.accesstoken if token else None, session=jira_http
        )

    def override_db_session():
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_subticket_sync_service] = (
        lambda: SubticketSyncService(session, client_factory=client_factory)
    )
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # Not used as a context manager, the lifespan would replace the test event handlers
    return TestClient(app)


def bearer(user) -> dict:
    token = JWTHandler().create_access_token(user.id, user.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def developer_headers(seed):
    return bearer(seed.developer)


@pytest.fixture
def lead_headers(seed):
    return bearer(seed.lead)
