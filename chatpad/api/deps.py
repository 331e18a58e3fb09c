"""
API dependencies - shared across all routes.
"""
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.config import settings
from chatpad.core.exceptions import UnauthorizedError
from chatpad.core.security import verify_token
from chatpad.models.user import User
from chatpad.repositories.user_repo import UserRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.dispatch_service import EventDispatcher


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


async def _user_from_token(token: str, session: AsyncSession) -> User:
    payload = verify_token(token, "access")
    if not payload:
        raise UnauthorizedError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(uuid.UUID(user_id))

    if not user:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")

    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    return await _user_from_token(token, session)


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """Authenticated user if a token was sent; public endpoints use this."""
    if not token:
        return None
    return await _user_from_token(token, session)


async def get_access_context(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> AccessContext:
    """Resolve the tenant context for this request. Nothing is cached."""
    return await AccessService(session).build_context(current_user.id)


def get_event_dispatcher() -> EventDispatcher:
    """Dispatcher used for post-commit delivery of outbox events."""
    return EventDispatcher()


def get_client_info(request: Request) -> dict:
    """Extract client info from request."""
    forwarded = request.headers.get("x-forwarded-for")
    return {
        "ip_address": forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None),
        "user_agent": request.headers.get("user-agent")
    }
