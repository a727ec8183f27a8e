"""
Authentication infrastructure module.
Handles JWT validation, user authentication, and authorization.
"""

from .jwt_handler import JWTHandler
from .dependencies import (
    CurrentUser,
    ProjectLead,
    get_current_user,
    get_current_user_id,
    get_jwt_handler,
    require_project_lead,
    security,
)

__all__ = [
    "JWTHandler",
    "CurrentUser",
    "ProjectLead",
    "get_current_user",
    "get_current_user_id",
    "get_jwt_handler",
    "require_project_lead",
    "security",
]
