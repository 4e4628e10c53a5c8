"""FastAPI dependencies."""
import logging

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.database import get_db
from backend.models.user import User
from backend.services.auth_service import AuthService, AuthError
from backend.services.user_service import UserService

logger = logging.getLogger(__name__)


settings = get_settings()


def _mask_identifier(identifier: str) -> str:
    """Mask a sensitive identifier for logging (e.g., user_id, token)."""
    if not identifier:
        return "<missing>"
    if len(identifier) <= 8:
        return f"{identifier[:2]}...{identifier[-2:]}"
    return f"{identifier[:4]}...{identifier[-4:]}"


async def get_current_user(
        request: Request,
        authorization: str | None = Header(default=None, alias="Authorization"),
        db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the current authenticated user via JWT access token.

    Checks for access token in the following order:
    1. HTTP-only cookie (preferred, secure)
    2. Authorization header (API clients)
    """

    token = request.cookies.get(settings.access_token_cookie_name)

    if not token and authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HTTPException(status_code=401, detail="invalid_authorization_header")

    if not token:
        raise HTTPException(status_code=401, detail="missing_credentials")

    try:
        user_id = AuthService().user_id_from_token(token)
    except AuthError as exc:
        detail = "token_expired" if str(exc) == "token_expired" else "invalid_token"
        logger.info(f"Rejected access token {_mask_identifier(token)}: {detail}")
        raise HTTPException(status_code=401, detail=detail) from exc

    user = await UserService(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="invalid_token")
    return user
