"""
Platform role service - operator roles and capabilities.
"""
import uuid
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from chatpad.models.audit import AuditActions
from chatpad.models.platform import UserRole, PlatformRoles, AdminPermission
from chatpad.repositories.platform_repo import UserRoleRepository
from chatpad.repositories.user_repo import UserRepository
from chatpad.services.access_service import AccessService
from chatpad.services.audit_service import AuditService


class PlatformRoleService:
    """Service for platform role operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.role_repo = UserRoleRepository(session)
        self.user_repo = UserRepository(session)
        self.access = AccessService(session)
        self.audit = AuditService(session)

    async def get_role(self, actor_id: uuid.UUID, target_id: uuid.UUID) -> dict:
        """Role and capabilities of a user. Visible to the user and to platform operators."""
        if actor_id != target_id and not await self.access.is_platform_operator(actor_id):
            raise ForbiddenError("Only platform operators can view other users' roles")

        user_role = await self.role_repo.get_by_user_id(target_id)
        return {
            "user_id": target_id,
            "role": user_role.role if user_role else PlatformRoles.MEMBER,
            "admin_permissions": list(user_role.admin_permissions or []) if user_role else []
        }

    async def set_role(
        self,
        actor_id: uuid.UUID,
        target_id: uuid.UUID,
        role: str,
        admin_permissions: Optional[List[str]] = None
    ) -> UserRole:
        """
        Grant a platform role. Requires manage_team; only a super_admin
        may grant or take away super_admin.
        """
        await self.access.require_admin_permission(actor_id, AdminPermission.MANAGE_TEAM)

        if role not in PlatformRoles.ALL:
            raise ValidationError(f"Unknown platform role '{role}'", "role")

        admin_permissions = list(admin_permissions or [])
        unknown = [p for p in admin_permissions if p not in AdminPermission.ALL]
        if unknown:
            raise ValidationError(f"Unknown permissions: {', '.join(unknown)}", "admin_permissions")

        if not await self.user_repo.exists(target_id):
            raise NotFoundError("User", str(target_id))

        user_role = await self.role_repo.get_by_user_id(target_id)
        previous_role = user_role.role if user_role else PlatformRoles.MEMBER
        previous_permissions = list(user_role.admin_permissions or []) if user_role else []

        touches_super_admin = PlatformRoles.SUPER_ADMIN in (role, previous_role)
        if touches_super_admin and not await self.access.is_super_admin(actor_id):
            raise ForbiddenError("Only a super admin can grant or revoke super admin")

        if user_role:
            user_role = await self.role_repo.update(user_role.id, {
                "role": role,
                "admin_permissions": admin_permissions
            })
        else:
            user_role = await self.role_repo.create({
                "user_id": target_id,
                "role": role,
                "admin_permissions": admin_permissions
            })

        await self.audit.log(
            actor_id=actor_id,
            action=AuditActions.PLATFORM_ROLE_CHANGE,
            target_type="user",
            target_id=target_id,
            details={
                "previous_role": previous_role,
                "new_role": role,
                "previous_permissions": previous_permissions,
                "new_permissions": admin_permissions
            }
        )
        return user_role

    async def check_permission(self, principal_id: uuid.UUID, capability: str) -> bool:
        if capability not in AdminPermission.ALL:
            raise ValidationError(f"Unknown permission '{capability}'", "permission")
        return await self.access.has_admin_permission(principal_id, capability)
