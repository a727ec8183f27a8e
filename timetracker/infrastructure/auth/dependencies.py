"""
Authentication dependencies for FastAPI.
Resolves the bearer token to the user row and guards admin endpoints.
"""

from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from timetracker.domain.models.base import ValidationError
from timetracker.infrastructure.auth.jwt_handler import JWTHandler
from timetracker.infrastructure.db.database import get_db_session
from timetracker.infrastructure.db.models import UserModel


# Security scheme, a missing header is reported as 401 below instead of 403
security = HTTPBearer(auto_error=False)

_jwt_handler: Optional[JWTHandler] = None


def get_jwt_handler() -> JWTHandler:
    """Dependency to get JWT handler."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = JWTHandler()
    return _jwt_handler


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)]
) -> int:
    """
    FastAPI dependency to get current authenticated user ID.

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        return jwt_handler.get_user_id(credentials.credentials)
    except ValidationError as e:
        raise _unauthorized(str(e))


async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    session: Annotated[Session, Depends(get_db_session)]
) -> UserModel:
    """FastAPI dependency to load the authenticated user."""
    user = session.get(UserModel, user_id)
    if user is None:
        raise _unauthorized("Unknown user")
    return user


async def require_project_lead(
    user: Annotated[UserModel, Depends(get_current_user)]
) -> UserModel:
    """Only project leads and admins may manage master data."""
    if not user.is_project_lead:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to perform this action.",
        )
    return user


CurrentUser = Annotated[UserModel, Depends(get_current_user)]
ProjectLead = Annotated[UserModel, Depends(require_project_lead)]
