"""
JIRA integration, work logs and project subtickets.
"""

from .exceptions import (
    JiraApiException, JiraApiInvalidResourceException, JiraApiUnauthorizedException
)
from .http_client import JiraHttpClient
from .work_log_service import JiraWorkLogService
from .integration_service import JiraIntegrationService
from .subticket_sync_service import SubticketSyncService

__all__ = [
    "JiraApiException",
    "JiraApiInvalidResourceException",
    "JiraApiUnauthorizedException",
    "JiraHttpClient",
    "JiraWorkLogService",
    "JiraIntegrationService",
    "SubticketSyncService",
]
