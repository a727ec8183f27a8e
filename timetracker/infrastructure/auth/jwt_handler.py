"""
JWT token handler.
Issues and validates the bearer tokens of the time tracker API.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt

from timetracker.config import get_settings
from timetracker.domain.models.base import ValidationError


class JWTHandler:
    """Handles JWT token creation, validation and user extraction."""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.settings = get_settings()
        self.jwt_secret = secret or self.settings.jwt_secret_key
        self.jwt_algorithm = algorithm or self.settings.jwt_algorithm

    def create_access_token(
        self,
        user_id: int,
        username: str,
        expires_minutes: Optional[int] = None,
    ) -> str:
        """
        Create a signed access token.

        Args:
            user_id: ID of the user, stored in the sub claim
            username: Login name of the user
            expires_minutes: Lifetime, defaults to the configured one

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        lifetime = expires_minutes or self.settings.jwt_access_token_expire_minutes
        payload = {
            "sub": str(user_id),
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=lifetime)).timestamp()),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a token.

        Raises:
            ValidationError: If token is invalid or expired
        """
        if token.startswith('Bearer '):
            token = token[7:]

        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except JWTError as e:
            raise ValidationError(f"Invalid JWT token: {str(e)}")

        if 'sub' not in payload:
            raise ValidationError("Token missing user ID (sub claim)")

        return payload

    def get_user_id(self, token: str) -> int:
        payload = self.verify_token(token)
        try:
            return int(payload['sub'])
        except (TypeError, ValueError):
            raise ValidationError("Token carries an invalid user ID")

    def is_token_valid(self, token: str) -> bool:
        try:
            self.verify_token(token)
            return True
        except ValidationError:
            return False
