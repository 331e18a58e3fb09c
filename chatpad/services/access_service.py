"""
Access service - account resolution and authorization predicates.

Every check reads current state; nothing is cached between calls, so a
removed membership or an expired impersonation session takes effect on
the very next request.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.core.exceptions import ForbiddenError, NoAccountContextError
from chatpad.core.policies import ACCOUNT_ADMIN, get_policy
from chatpad.models.platform import ImpersonationSession, PlatformRoles
from chatpad.repositories.platform_repo import (
    UserRoleRepository,
    SubscriptionRepository,
    ImpersonationSessionRepository
)
from chatpad.repositories.team_repo import TeamMemberRepository


@dataclass(frozen=True)
class AccessContext:
    """
    Explicit tenant context for one request.

    principal_id is the authenticated user. acting_id is who account-level
    predicates are evaluated for: the impersonated target while a valid
    impersonation session exists, otherwise the principal itself.
    """
    principal_id: uuid.UUID
    acting_id: uuid.UUID
    account_id: Optional[uuid.UUID]
    impersonation_session_id: Optional[uuid.UUID] = None

    @property
    def is_impersonating(self) -> bool:
        return self.impersonation_session_id is not None

    def require_account(self) -> uuid.UUID:
        if self.account_id is None:
            raise NoAccountContextError()
        return self.account_id


class AccessService:
    """Authorization predicates shared by every service."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.member_repo = TeamMemberRepository(session)
        self.role_repo = UserRoleRepository(session)
        self.subscription_repo = SubscriptionRepository(session)
        self.impersonation_repo = ImpersonationSessionRepository(session)

    # -------------------------------------------------------------------------
    # Account resolution
    # -------------------------------------------------------------------------

    async def get_valid_impersonation(
        self,
        admin_user_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> Optional[ImpersonationSession]:
        """Active session within the time window. Expired sessions are ignored, not errors."""
        now = now or datetime.utcnow()
        cutoff = now - timedelta(minutes=settings.IMPERSONATION_SESSION_MINUTES)
        return await self.impersonation_repo.get_valid_session(admin_user_id, cutoff)

    async def _resolve_own_account(self, principal_id: uuid.UUID) -> Optional[uuid.UUID]:
        if await self.subscription_repo.has_active_subscription(principal_id):
            return principal_id

        memberships = await self.member_repo.get_memberships_for_member(principal_id)
        if memberships:
            # More than one owner is not supposed to happen; earliest wins.
            return memberships[0].owner_id

        return None

    async def resolve_account_id(
        self,
        principal_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> Optional[uuid.UUID]:
        """
        Account whose resources the principal accesses by default.

        Priority: valid impersonation target, own subscription,
        earliest team membership, otherwise None.
        """
        impersonation = await self.get_valid_impersonation(principal_id, now)
        if impersonation:
            target_id = impersonation.target_user_id
            return await self._resolve_own_account(target_id) or target_id

        return await self._resolve_own_account(principal_id)

    async def require_account_id(
        self,
        principal_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> uuid.UUID:
        account_id = await self.resolve_account_id(principal_id, now)
        if account_id is None:
            raise NoAccountContextError()
        return account_id

    async def build_context(
        self,
        principal_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> AccessContext:
        """Resolve the full request context for a principal."""
        impersonation = await self.get_valid_impersonation(principal_id, now)
        if impersonation:
            target_id = impersonation.target_user_id
            return AccessContext(
                principal_id=principal_id,
                acting_id=target_id,
                account_id=await self._resolve_own_account(target_id) or target_id,
                impersonation_session_id=impersonation.id
            )

        return AccessContext(
            principal_id=principal_id,
            acting_id=principal_id,
            account_id=await self._resolve_own_account(principal_id)
        )

    async def accessible_account_ids(self, principal_id: uuid.UUID) -> List[uuid.UUID]:
        """The principal's own id plus every owner it is a team member of."""
        memberships = await self.member_repo.get_memberships_for_member(principal_id)
        return [principal_id] + [m.owner_id for m in memberships]

    # -------------------------------------------------------------------------
    # Account predicates
    # -------------------------------------------------------------------------

    async def has_account_access(
        self,
        account_id: uuid.UUID,
        principal_id: uuid.UUID
    ) -> bool:
        """Owner, or any team member of the owner."""
        if principal_id == account_id:
            return True
        return await self.member_repo.is_member(account_id, principal_id)

    async def is_account_admin(
        self,
        account_id: uuid.UUID,
        principal_id: uuid.UUID
    ) -> bool:
        """Owner, or a team member with the admin team role."""
        if principal_id == account_id:
            return True
        return await self.member_repo.is_admin(account_id, principal_id)

    # -------------------------------------------------------------------------
    # Platform predicates
    # -------------------------------------------------------------------------

    async def get_platform_role(self, principal_id: uuid.UUID) -> Optional[str]:
        user_role = await self.role_repo.get_by_user_id(principal_id)
        return user_role.role if user_role else None

    async def is_super_admin(self, principal_id: uuid.UUID) -> bool:
        return await self.get_platform_role(principal_id) == PlatformRoles.SUPER_ADMIN

    async def is_platform_operator(self, principal_id: uuid.UUID) -> bool:
        """super_admin or pilot_support."""
        return await self.get_platform_role(principal_id) in PlatformRoles.OPERATORS

    async def has_admin_permission(
        self,
        principal_id: uuid.UUID,
        capability: Optional[str]
    ) -> bool:
        """super_admin always; otherwise the capability must be granted explicitly."""
        user_role = await self.role_repo.get_by_user_id(principal_id)
        if not user_role:
            return False
        if user_role.role == PlatformRoles.SUPER_ADMIN:
            return True
        return capability is not None and capability in (user_role.admin_permissions or [])

    async def require_admin_permission(self, principal_id: uuid.UUID, capability: str) -> None:
        if not await self.has_admin_permission(principal_id, capability):
            raise ForbiddenError(f"Missing platform permission '{capability}'")

    # -------------------------------------------------------------------------
    # Resource guards
    # -------------------------------------------------------------------------

    async def can(
        self,
        ctx: AccessContext,
        resource_type: str,
        action: str,
        account_id: uuid.UUID
    ) -> bool:
        """
        Evaluate the resource policy for an action on a row owned by account_id.
        Platform capabilities are checked against the real principal,
        account predicates against the acting user.
        """
        policy = get_policy(resource_type)
        if await self.has_admin_permission(ctx.principal_id, policy.capability_for(action)):
            return True

        if policy.rule_for(action) == ACCOUNT_ADMIN:
            return await self.is_account_admin(account_id, ctx.acting_id)
        return await self.has_account_access(account_id, ctx.acting_id)

    async def authorize(
        self,
        ctx: AccessContext,
        resource_type: str,
        action: str,
        account_id: uuid.UUID
    ) -> None:
        if not await self.can(ctx, resource_type, action, account_id):
            raise ForbiddenError(f"Not allowed to {action} {resource_type}")
