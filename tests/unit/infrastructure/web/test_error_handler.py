"""
Unit tests for the exception classification and error rendering.
"""

import json

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from timetracker.config import settings
from timetracker.domain.models.base import (
    BusinessRuleViolation,
    DuplicateEntityError,
    EntityNotFoundError,
    ValidationError,
)
from timetracker.infrastructure.integrations.jira import JiraApiException, JiraApiUnauthorizedException
from timetracker.infrastructure.web.middleware.error_handler import (
    GENERIC_SERVER_ERROR,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    TooManyRequestsException,
    UnauthorizedException,
    ValidationException,
    build_error_response,
    classify_exception,
    wants_json,
)


def make_request(path="/", headers=None, method="GET"):
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class TestClassifyException:
    """Test cases for mapping exceptions onto responses."""

    @pytest.mark.parametrize("exc,status_code", [
        (ValidationError("Name is required.", field="name"), 422),
        (DuplicateEntityError("Customer", "name", "Acme"), 422),
        (EntityNotFoundError("Entry", 5, "No entry for id."), 404),
        (BusinessRuleViolation("page can not be negative."), 400),
        (ForbiddenException(), 403),
        (ValidationException("Name taken", field="name"), 422),
        (NotFoundException(), 404),
        (UnauthorizedException(), 401),
        (ConflictException("Contract overlaps"), 409),
        (HTTPException(status_code=401, detail="Not authenticated"), 401),
        (JiraApiException("Jira is down", 500), 502),
        (ValueError("Invalid JSON body"), 400),
        (PermissionError(), 403),
        (LookupError("missing"), 404),
        (TimeoutError(), 408),
        (RuntimeError("boom"), 500),
    ])
    def test_status_codes(self, exc, status_code):
        """Test the status code of each exception family."""
        assert classify_exception(exc)[0] == status_code

    def test_validation_error_names_field(self):
        """Test that the invalid field is part of the body."""
        status_code, error, message, details, _ = classify_exception(
            ValidationError("Name is required.", field="name")
        )

        assert error == "VALIDATION_ERROR"
        assert message == "Name is required."
        assert details == {"field": "name"}

    def test_jira_unauthorized_carries_redirect(self):
        """Test that the client learns where to authorize."""
        exc = JiraApiUnauthorizedException(redirect_url="https://jira.example.com")
        status_code, error, _, details, _ = classify_exception(exc)

        assert status_code == 401
        assert error == "JIRA_UNAUTHORIZED"
        assert details["redirect_url"] == "https://jira.example.com"

    def test_rate_limit_sets_retry_after(self):
        assert classify_exception(TooManyRequestsException(retry_after=30))[4] == {"Retry-After": "30"}

    def test_invalid_json_is_a_bad_request(self):
        exc = json.JSONDecodeError("Expecting value", "{", 1)
        status_code, error, _, _, _ = classify_exception(exc)

        assert status_code == 400
        assert error == "Invalid JSON"


class TestWantsJson:
    """Test cases for choosing between JSON and HTML."""

    @pytest.mark.parametrize("path", [
        "/getData",
        "/tracking/save",
        "/interpretation/allEntries",
        "/customer/save",
        "/user/delete",
        "/settings/save",
    ])
    def test_api_paths(self, path):
        assert wants_json(make_request(path))

    def test_browser_navigation(self):
        """Test that plain pages render HTML."""
        assert not wants_json(make_request("/", {"Accept": "text/html"}))
        assert not wants_json(make_request("/export"))

    def test_headers(self):
        """Test that ajax requests get JSON on any path."""
        assert wants_json(make_request("/", {"Accept": "application/json"}))
        assert wants_json(make_request("/", {"X-Requested-With": "XMLHttpRequest"}))


class TestBuildErrorResponse:
    """Test cases for the rendered error responses."""

    def test_json_body(self):
        response = build_error_response(
            make_request("/customer/save", method="POST"),
            ValidationError("Name is required.", field="name"),
        )

        assert response.status_code == 422
        assert json.loads(response.body) == {
            "error": "VALIDATION_ERROR",
            "message": "Name is required.",
            "status_code": 422,
            "field": "name",
        }

    def test_html_page(self):
        response = build_error_response(
            make_request("/export", {"Accept": "text/html"}),
            EntityNotFoundError("Entry", 1, "No entry for id."),
        )

        assert response.status_code == 404
        assert response.media_type == "text/html"
        assert "No entry for id." in response.body.decode()

    def test_server_errors_hide_details(self, monkeypatch):
        """Test that internal messages are not shown outside development."""
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "debug", False)

        response = build_error_response(make_request("/getData"), RuntimeError("password=secret"))
        body = json.loads(response.body)

        assert response.status_code == 500
        assert body["message"] == GENERIC_SERVER_ERROR
        assert "debug" not in body

    def test_server_errors_show_details_in_debug(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)

        response = build_error_response(make_request("/getData"), RuntimeError("database locked"))
        body = json.loads(response.body)

        assert body["message"] == "database locked"
        assert body["debug"]["exception_type"] == "RuntimeError"
