"""Access token helpers.

Tokens are issued by the account service; this module only needs to read them
(and to mint them for local tooling and tests).
"""
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from backend.config import get_settings
from backend.models.user import User

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Raised when authentication fails."""


class AuthService:
    """Encode and decode JWT access tokens."""

    def __init__(self):
        self.settings = get_settings()

    def _access_token_payload(self, user: User) -> dict[str, str | int]:
        expire = datetime.now(UTC) + timedelta(minutes=self.settings.access_token_exp_minutes)
        return {
            "sub": str(user.user_id),
            "role": user.role,
            "exp": int(expire.timestamp()),
        }

    def create_access_token(self, user: User) -> tuple[str, int]:
        payload = self._access_token_payload(user)
        token = jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)
        expires_in = self.settings.access_token_exp_minutes * 60
        return token, expires_in

    def decode_access_token(self, token: str) -> dict:
        try:
            return jwt.decode(token, self.settings.secret_key, algorithms=[self.settings.jwt_algorithm])
        except ExpiredSignatureError as exc:
            raise AuthError("token_expired") from exc
        except InvalidTokenError as exc:
            raise AuthError("invalid_token") from exc

    def user_id_from_token(self, token: str) -> uuid.UUID:
        payload = self.decode_access_token(token)
        subject = payload.get("sub")
        if not subject:
            raise AuthError("invalid_token")
        try:
            return uuid.UUID(str(subject))
        except ValueError as exc:
            raise AuthError("invalid_token") from exc
