"""
Errors raised while talking to a JIRA server.
"""

from typing import Optional


class JiraApiException(Exception):
    """Base class for JIRA API failures."""

    def __init__(self, message: str, code: int = 0, redirect_url: Optional[str] = None):
        self.message = message
        self.code = code
        self.redirect_url = redirect_url
        super().__init__(message)


class JiraApiUnauthorizedException(JiraApiException):
    """The stored credentials were rejected, the user has to authorize again."""

    def __init__(self, message: str = "Unauthorized", redirect_url: Optional[str] = None):
        super().__init__(message, 401, redirect_url)


class JiraApiInvalidResourceException(JiraApiException):
    """The requested issue or work log does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, 404)
