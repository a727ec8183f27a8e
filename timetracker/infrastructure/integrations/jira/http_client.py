"""
HTTP client for the JIRA REST API.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from timetracker.config import settings
from .exceptions import (
    JiraApiException,
    JiraApiInvalidResourceException,
    JiraApiUnauthorizedException,
)

logger = logging.getLogger(__name__)


class JiraHttpClient:
    """
    Thin wrapper around a requests session bound to one ticket system.
    Use it as a context manager, leaving the block closes the session.

    Requests are authenticated with the user's personal access token when
    one is stored, otherwise with the ticket system's login and password.
    """

    API_PATH = "/rest/api/latest/"

    def __init__(
        self,
        ticket_system,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.ticket_system = ticket_system
        self.base_url = (ticket_system.url or "").rstrip("/") + self.API_PATH
        self.timeout = timeout if timeout is not None else settings.jira_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self._setup_authentication(access_token)

    def _setup_authentication(self, access_token: Optional[str]) -> None:
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"
        elif self.ticket_system.login:
            self.session.auth = HTTPBasicAuth(self.ticket_system.login, self.ticket_system.password or "")

    def _url(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = self._url(path)
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"JIRA request {method} {url} failed: {str(e)}")
            raise JiraApiException(f"Jira API request failed: {str(e)}") from e

        self._raise_for_status(response)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def _raise_for_status(self, response: requests.Response) -> None:
        if response.status_code < 400:
            return

        if response.status_code == 401:
            raise JiraApiUnauthorizedException(
                "Unauthorized. Please authorize the time tracker in Jira.",
                redirect_url=self.ticket_system.url,
            )
        if response.status_code == 404:
            raise JiraApiInvalidResourceException(f"Jira resource not found: {response.url}")

        raise JiraApiException(
            f"Jira API error [{response.status_code}]: {self._error_message(response)}",
            response.status_code,
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""

        messages = list(body.get("errorMessages") or [])
        errors = body.get("errors") or {}
        messages.extend(f"{key}: {value}" for key, value in errors.items())
        return ", ".join(messages) or response.reason or ""

    def get(self, path: str) -> Any:
        return self._request("GET", path)

    def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._request("POST", path, payload)

    def put(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._request("PUT", path, payload)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def does_resource_exist(self, path: str) -> bool:
        """HEAD the resource, only a 404 counts as missing."""
        try:
            self._request("HEAD", path)
        except JiraApiInvalidResourceException:
            return False
        return True

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "JiraHttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
