"""
Audit service - best-effort trail of security-sensitive actions.

Entries are written in their own session after the audited action has
committed. A failed write is logged and dropped; it never reaches the caller.
"""
import logging
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.models.audit import AdminAuditLog
from chatpad.models.platform import AdminPermission
from chatpad.repositories.audit_repo import AdminAuditLogRepository
from chatpad.repositories.user_repo import ProfileRepository
from chatpad.services.access_service import AccessService

logger = logging.getLogger(__name__)

# Target types whose id is a user id, so the profile email can be attached
USER_TARGET_TYPES = ("user", "account", "team_member")


class AuditService:
    """Service for writing and reading the audit log."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_repo = AdminAuditLogRepository(session)
        self.profile_repo = ProfileRepository(session)

    async def _lookup_email(self, user_id: uuid.UUID) -> Optional[str]:
        profile = await self.profile_repo.get_by_user_id(user_id)
        return profile.email if profile else None

    async def log(
        self,
        actor_id: Optional[uuid.UUID],
        action: str,
        target_type: str,
        target_id: Optional[uuid.UUID] = None,
        success: bool = True,
        details: Optional[dict] = None,
        target_email: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Optional[AdminAuditLog]:
        """
        Append an audit entry. Returns the entry, or None if it could not be written.

        A failed email lookup still writes the entry, with the error noted in details.
        """
        details = dict(details or {})

        if target_email is None and target_id is not None and target_type in USER_TARGET_TYPES:
            try:
                target_email = await self._lookup_email(target_id)
            except Exception as e:
                logger.warning("Audit enrichment failed for %s on %s: %s", action, target_id, e)
                details["enrichment_error"] = str(e)

        entry = AdminAuditLog(
            admin_user_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            target_email=target_email,
            success=success,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent
        )

        async with AsyncSession(self.session.bind, expire_on_commit=False) as audit_session:
            try:
                return await AdminAuditLogRepository(audit_session).append(entry)
            except Exception as e:
                await audit_session.rollback()
                logger.warning("Audit write failed for %s: %s", action, e)
                return None

    async def list_entries(
        self,
        principal_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        target_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 50
    ) -> dict:
        """Search the log. Requires the view_audit capability."""
        await AccessService(self.session).require_admin_permission(
            principal_id, AdminPermission.VIEW_AUDIT
        )
        return await self.audit_repo.search(
            actor_id=actor_id,
            action=action,
            target_id=target_id,
            page=page,
            limit=limit
        )
