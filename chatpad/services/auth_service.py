"""
Authentication service - signup and login.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.core.exceptions import (
    AlreadyExistsError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError
)
from chatpad.core.security import get_password_hash, verify_password, create_access_token
from chatpad.models.platform import SubscriptionStatus
from chatpad.repositories.platform_repo import SubscriptionRepository
from chatpad.repositories.user_repo import UserRepository, ProfileRepository
from chatpad.services.team_service import TeamService

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.subscription_repo = SubscriptionRepository(session)
        self.team_service = TeamService(session)

    async def register(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        company_name: Optional[str] = None,
        invitation_token: Optional[str] = None
    ) -> dict:
        """
        Create a user and profile.

        Without an invitation the user starts a trial and owns an account.
        With one, the user joins the inviting owner's team instead.
        """
        email = email.strip().lower()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "password")

        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise AlreadyExistsError("User", "email", email)

        invitation = None
        if invitation_token:
            try:
                invitation = await self.team_service.check_invitation(invitation_token, email)
            except (NotFoundError, ForbiddenError):
                raise ValidationError("Invitation is not valid for this email", "invitation_token")
            except ValidationError as e:
                raise ValidationError(e.message, "invitation_token")

        user = await self.user_repo.create({
            "email": email,
            "password_hash": get_password_hash(password)
        }, commit=False)
        await self.profile_repo.create({
            "user_id": user.id,
            "email": email,
            "display_name": display_name,
            "company_name": company_name,
            "signup_completed_at": datetime.utcnow()
        }, commit=False)

        account_id: Optional[uuid.UUID] = user.id
        if invitation:
            membership = await self.team_service.accept_invitation(user.id, invitation_token, commit=False)
            account_id = membership.owner_id
        else:
            await self.subscription_repo.create({
                "user_id": user.id,
                "plan_id": settings.TRIAL_PLAN_ID,
                "status": SubscriptionStatus.TRIALING
            }, commit=False)

        await self.session.commit()
        if invitation:
            await self.team_service.record_join(user.id, invitation)

        return {
            "message": "User registered successfully",
            "user_id": str(user.id),
            "account_id": str(account_id)
        }

    async def login(self, email: str, password: str) -> dict:
        """Authenticate user and return an access token."""
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Incorrect email or password")

        if not user.is_active:
            raise UnauthorizedError("User account is deactivated")

        access_token = create_access_token({"sub": user.email, "user_id": str(user.id)})
        await self.user_repo.update_last_login(user.id)

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }
