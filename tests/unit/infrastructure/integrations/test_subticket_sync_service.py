"""
Unit tests for the subticket sync of projects.
HTTP is mocked at the requests session.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from timetracker.domain.models.base import BusinessRuleViolation, EntityNotFoundError
from timetracker.infrastructure.db.models import ProjectModel, UserTicketSystemModel
from timetracker.infrastructure.integrations.jira import JiraHttpClient, SubticketSyncService
from timetracker.infrastructure.integrations.jira.subticket_sync_service import (
    get_subtickets,
    natural_sort_key,
)

API = "https://jira.example.com/rest/api/latest/"


def response(status_code=200, body=None):
    mocked = Mock()
    mocked.status_code = status_code
    mocked.content = b"" if body is None else json.dumps(body).encode()
    mocked.json.return_value = body
    mocked.url = API
    mocked.text = ""
    mocked.reason = "Error" if status_code >= 400 else "OK"
    return mocked


def issue(*subtasks, issue_type="Story"):
    return {"fields": {"issuetype": {"name": issue_type}, "subtasks": [{"key": key} for key in subtasks]}}


class TestGetSubtickets:
    """Test cases for reading subtasks and epic issues."""

    def setup_method(self):
        self.http = Mock(spec=requests.Session)
        self.http.headers = {}
        self.http.auth = None

    def _client(self, *responses):
        self.http.request.side_effect = list(responses)
        return JiraHttpClient(Mock(url="https://jira.example.com", login="bot", password="secret"), session=self.http)

    def test_missing_ticket(self):
        assert get_subtickets(self._client(response(404, {})), "WEB-1") == []

    def test_subtasks(self):
        client = self._client(response(200), response(200, issue("WEB-2", "WEB-3")))

        assert get_subtickets(client, "WEB-1") == ["WEB-2", "WEB-3"]
        self.http.request.assert_called_with("GET", API + "issue/WEB-1", json=None, timeout=client.timeout)

    def test_epic_collects_its_issues(self):
        """Test that issues of an epic and their subtasks are included."""
        search = {"issues": [
            {"key": "WEB-5", "fields": {"subtasks": [{"key": "WEB-6"}]}},
            {"key": "WEB-7", "fields": {"subtasks": []}},
        ]}
        client = self._client(response(200), response(200, issue("WEB-2", issue_type="Epic")), response(200, search))

        assert get_subtickets(client, "WEB-1") == ["WEB-2", "WEB-5", "WEB-6", "WEB-7"]
        self.http.request.assert_called_with(
            "POST",
            API + "search/",
            json={"jql": '"Epic Link" = WEB-1', "fields": ["key", "subtasks"], "maxResults": 100},
            timeout=client.timeout,
        )

    def test_natural_order(self):
        tickets = ["WEB-10", "web-2", "OPS-1", "WEB-1"]
        assert sorted(tickets, key=natural_sort_key) == ["OPS-1", "WEB-1", "web-2", "WEB-10"]


class TestSubticketSyncService:
    """Test cases for SubticketSyncService against the database."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed):
        self.db = session
        self.seed = seed
        self.http = Mock(spec=requests.Session)
        self.http.headers = {}
        self.http.auth = None

        def client_factory(system, token):
            return JiraHttpClient(system, access_token=token.accesstoken if token else None, session=self.http)

        self.service = SubticketSyncService(session, client_factory=client_factory)
        seed.website.jira_ticket = "WEB-10, web-2"
        seed.website.project_lead = seed.lead
        session.commit()

    def test_sync_stores_sorted_subtickets(self):
        """Test that main tickets and subtasks are stored in natural order."""
        self.http.request.side_effect = [
            response(200), response(200, issue("WEB-11")),
            response(404, {}),
        ]

        subtickets = self.service.sync_project_subtickets(self.seed.website.id)

        assert subtickets == ["web-2", "WEB-10", "WEB-11"]
        assert self.seed.website.subtickets == "web-2,WEB-10,WEB-11"
        self.http.close.assert_called_once_with()

    def test_lead_token_is_used(self):
        self.db.add(UserTicketSystemModel(user=self.seed.lead, ticket_system=self.seed.jira, accesstoken="lead-token"))
        self.seed.website.jira_ticket = "WEB-1"
        self.db.commit()
        self.http.request.side_effect = [response(404, {})]

        assert self.service.sync_project_subtickets(self.seed.website) == ["WEB-1"]
        assert self.http.headers["Authorization"] == "Bearer lead-token"

    def test_without_main_ticket_clears_subtickets(self):
        self.seed.website.jira_ticket = None
        self.seed.website.subtickets = "WEB-1,WEB-2"
        self.db.commit()

        assert self.service.sync_project_subtickets(self.seed.website) == []
        assert self.seed.website.subtickets == ""
        self.http.request.assert_not_called()

    def test_unknown_project(self):
        with pytest.raises(EntityNotFoundError, match="Project does not exist"):
            self.service.sync_project_subtickets(9999)

    def test_project_without_ticket_system(self):
        with pytest.raises(BusinessRuleViolation, match="No ticket system configured for project"):
            self.service.sync_project_subtickets(self.seed.internal)

    def test_project_without_lead(self):
        self.seed.website.project_lead = None
        self.db.commit()

        with pytest.raises(BusinessRuleViolation, match="Project has no lead user: Website"):
            self.service.sync_project_subtickets(self.seed.website)

    def test_lead_without_credentials(self):
        """Test that a system without login needs the lead's token."""
        self.seed.jira.login = None
        self.db.commit()

        with pytest.raises(BusinessRuleViolation, match="lead@Website"):
            self.service.sync_project_subtickets(self.seed.website)

    def test_sync_all_reports_failures(self):
        """Test that one failing project does not stop the others."""
        # Without a lead
        self.db.add(ProjectModel(name="Shop", customer=self.seed.acme, ticket_system=self.seed.jira, jira_ticket="SHOP-1"))
        self.db.commit()
        self.http.request.side_effect = [response(404, {}), response(404, {})]

        assert not self.service.sync_all_projects()
        assert self.seed.website.subtickets == "web-2,WEB-10"

    def test_sync_all(self):
        self.http.request.side_effect = [response(404, {}), response(404, {})]
        assert self.service.sync_all_projects()
