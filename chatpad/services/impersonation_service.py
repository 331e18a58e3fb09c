"""
Impersonation service - time-boxed support sessions.

A session is honored only while it is flagged active AND started within
the configured window; the flag alone is never trusted.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ValidationError
)
from chatpad.models.audit import AuditActions
from chatpad.models.platform import AdminPermission, ImpersonationSession
from chatpad.repositories.platform_repo import ImpersonationSessionRepository
from chatpad.repositories.user_repo import ProfileRepository
from chatpad.services.access_service import AccessService
from chatpad.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class ImpersonationService:
    """Service for impersonation operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.session_repo = ImpersonationSessionRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.access = AccessService(session)
        self.audit = AuditService(session)

    def _expires_at(self, started_at: datetime) -> datetime:
        return started_at + timedelta(minutes=settings.IMPERSONATION_SESSION_MINUTES)

    async def _close(self, impersonation: ImpersonationSession, now: datetime) -> None:
        impersonation.is_active = False
        impersonation.ended_at = now
        self.session.add(impersonation)

    async def start(
        self,
        admin_id: uuid.UUID,
        target_user_id: uuid.UUID,
        reason: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> dict:
        """Open a session on target_user_id, closing the admin's previous ones."""
        await self.access.require_admin_permission(admin_id, AdminPermission.IMPERSONATE_USERS)

        reason = (reason or "").strip()
        if len(reason) < settings.IMPERSONATION_MIN_REASON_LENGTH:
            raise ValidationError(
                f"A reason of at least {settings.IMPERSONATION_MIN_REASON_LENGTH} characters is required",
                "reason"
            )

        now = datetime.utcnow()
        started = await self.session_repo.count_started_since(admin_id, now - timedelta(hours=1))
        if started >= settings.MAX_IMPERSONATIONS_PER_HOUR:
            raise RateLimitError(
                f"Maximum {settings.MAX_IMPERSONATIONS_PER_HOUR} impersonations per hour"
            )

        if target_user_id == admin_id:
            raise ValidationError("Cannot impersonate yourself", "target_user_id")
        if await self.access.is_super_admin(target_user_id):
            raise ForbiddenError("Cannot impersonate another super admin")

        target_profile = await self.profile_repo.get_by_user_id(target_user_id)
        if not target_profile:
            raise NotFoundError("User", str(target_user_id))

        for previous in await self.session_repo.get_active_sessions(admin_id):
            await self._close(previous, now)

        impersonation = ImpersonationSession(
            admin_user_id=admin_id,
            target_user_id=target_user_id,
            reason=reason,
            is_active=True,
            started_at=now,
            meta_data={
                "target_display_name": target_profile.display_name,
                "target_email": target_profile.email,
                "user_agent": user_agent
            }
        )
        self.session.add(impersonation)
        await self.session.commit()
        await self.session.refresh(impersonation)

        await self.audit.log(
            actor_id=admin_id,
            action=AuditActions.IMPERSONATION_START,
            target_type="account",
            target_id=target_user_id,
            target_email=target_profile.email,
            details={
                "reason": reason,
                "session_id": str(impersonation.id),
                "target_display_name": target_profile.display_name
            },
            ip_address=ip_address,
            user_agent=user_agent
        )

        logger.info("Impersonation started: admin %s -> user %s (session %s)",
                    admin_id, target_user_id, impersonation.id)

        return {
            "session_id": impersonation.id,
            "target_user_id": target_user_id,
            "target_display_name": target_profile.display_name,
            "target_email": target_profile.email,
            "started_at": impersonation.started_at,
            "expires_at": self._expires_at(impersonation.started_at)
        }

    async def end(
        self,
        admin_id: uuid.UUID,
        session_id: uuid.UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> dict:
        """End one of the admin's sessions. Ending an ended session is a no-op."""
        impersonation = await self.session_repo.get(session_id)
        if not impersonation or impersonation.admin_user_id != admin_id:
            raise NotFoundError("Impersonation session", str(session_id))

        if not impersonation.is_active:
            return {"success": True, "already_ended": True}

        await self._close(impersonation, datetime.utcnow())
        await self.session.commit()

        await self.audit.log(
            actor_id=admin_id,
            action=AuditActions.IMPERSONATION_END,
            target_type="session",
            target_id=session_id,
            details={"target_user_id": str(impersonation.target_user_id)},
            ip_address=ip_address,
            user_agent=user_agent
        )

        logger.info("Impersonation ended: session %s by admin %s", session_id, admin_id)
        return {"success": True, "already_ended": False}

    async def end_all(self, admin_id: uuid.UUID) -> int:
        """End every session still flagged active for the admin."""
        sessions: List[ImpersonationSession] = await self.session_repo.get_active_sessions(admin_id)
        if not sessions:
            return 0

        now = datetime.utcnow()
        for impersonation in sessions:
            await self._close(impersonation, now)
        await self.session.commit()

        for impersonation in sessions:
            await self.audit.log(
                actor_id=admin_id,
                action=AuditActions.IMPERSONATION_END,
                target_type="session",
                target_id=impersonation.id,
                details={"target_user_id": str(impersonation.target_user_id), "bulk": True}
            )
        return len(sessions)

    async def get_active(
        self,
        admin_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> Optional[dict]:
        """The admin's valid session, or None. Stale sessions are not errors."""
        impersonation = await self.access.get_valid_impersonation(admin_id, now)
        if not impersonation:
            return None

        return {
            "session_id": impersonation.id,
            "target_user_id": impersonation.target_user_id,
            "target_display_name": (impersonation.meta_data or {}).get("target_display_name"),
            "target_email": (impersonation.meta_data or {}).get("target_email"),
            "started_at": impersonation.started_at,
            "expires_at": self._expires_at(impersonation.started_at)
        }
