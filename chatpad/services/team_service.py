"""
Team service - invitations and owner/member relations.
"""
import uuid
from datetime import datetime, timedelta
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.core.exceptions import (
    NotFoundError,
    AlreadyExistsError,
    ForbiddenError,
    ValidationError
)
from chatpad.core.security import generate_secure_token
from chatpad.models.audit import AuditActions
from chatpad.models.platform import AdminPermission
from chatpad.models.team import TeamMember, TeamRoles, PendingInvitation, InvitationStatus
from chatpad.repositories.team_repo import TeamMemberRepository, PendingInvitationRepository
from chatpad.repositories.user_repo import UserRepository, ProfileRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.audit_service import AuditService
from chatpad.services.notification_service import NotificationService, NotificationTypes


class TeamService:
    """Service for team operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.member_repo = TeamMemberRepository(session)
        self.invitation_repo = PendingInvitationRepository(session)
        self.user_repo = UserRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.access = AccessService(session)
        self.audit = AuditService(session)
        self.notifications = NotificationService(session)

    async def _require_account_admin(self, ctx: AccessContext) -> uuid.UUID:
        account_id = ctx.require_account()
        if await self.access.is_account_admin(account_id, ctx.acting_id):
            return account_id
        if await self.access.has_admin_permission(ctx.principal_id, AdminPermission.MANAGE_ACCOUNTS):
            return account_id
        raise ForbiddenError("Only account admins can manage the team")

    def _validate_role(self, role: str) -> None:
        if role not in TeamRoles.ALL:
            raise ValidationError(f"Role must be one of {', '.join(TeamRoles.ALL)}", "role")

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def add_member(
        self,
        owner_id: uuid.UUID,
        member_id: uuid.UUID,
        role: str = TeamRoles.MEMBER,
        commit: bool = True
    ) -> TeamMember:
        """Insert a membership row. Self-membership and duplicates are rejected."""
        if owner_id == member_id:
            raise ValidationError("An account owner cannot be a member of their own team", "member_id")
        self._validate_role(role)

        if await self.member_repo.is_member(owner_id, member_id):
            raise AlreadyExistsError("Team member", "member_id", str(member_id))

        return await self.member_repo.create({
            "owner_id": owner_id,
            "member_id": member_id,
            "role": role
        }, commit=commit)

    async def list_members(self, ctx: AccessContext) -> List[dict]:
        """The owner followed by every member, with profile data."""
        account_id = ctx.require_account()
        if not await self.access.has_account_access(account_id, ctx.acting_id):
            if not await self.access.has_admin_permission(ctx.principal_id, AdminPermission.VIEW_ACCOUNTS):
                raise ForbiddenError("No access to this account")

        owner = await self.user_repo.get(account_id)
        owner_profile = await self.profile_repo.get_by_user_id(account_id)
        members = [{
            "user_id": account_id,
            "email": owner.email if owner else None,
            "display_name": owner_profile.display_name if owner_profile else None,
            "role": "owner",
            "joined_at": owner.created_at if owner else None
        }]

        for membership in await self.member_repo.get_team(account_id):
            user = await self.user_repo.get(membership.member_id)
            profile = await self.profile_repo.get_by_user_id(membership.member_id)
            members.append({
                "user_id": membership.member_id,
                "email": user.email if user else None,
                "display_name": profile.display_name if profile else None,
                "role": membership.role,
                "joined_at": membership.created_at
            })

        return members

    async def update_member_role(
        self,
        ctx: AccessContext,
        member_id: uuid.UUID,
        role: str
    ) -> TeamMember:
        account_id = await self._require_account_admin(ctx)
        self._validate_role(role)

        membership = await self.member_repo.get_membership(account_id, member_id)
        if not membership:
            raise NotFoundError("Team member", str(member_id))

        previous_role = membership.role
        membership = await self.member_repo.update(membership.id, {"role": role})

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.TEAM_ROLE_CHANGE,
            target_type="team_member",
            target_id=member_id,
            details={"account_id": str(account_id), "previous_role": previous_role, "new_role": role}
        )
        return membership

    async def remove_member(self, ctx: AccessContext, member_id: uuid.UUID) -> None:
        """Delete a membership. Access is gone on the member's next request."""
        account_id = await self._require_account_admin(ctx)

        membership = await self.member_repo.get_membership(account_id, member_id)
        if not membership:
            raise NotFoundError("Team member", str(member_id))

        await self.member_repo.delete(membership.id)

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.TEAM_MEMBER_REMOVE,
            target_type="team_member",
            target_id=member_id,
            details={"account_id": str(account_id), "role": membership.role}
        )

    async def leave_account(
        self,
        principal_id: uuid.UUID,
        owner_id: Optional[uuid.UUID] = None
    ) -> None:
        """A member removes their own membership (the earliest one unless owner_id is given)."""
        memberships = await self.member_repo.get_memberships_for_member(principal_id)
        if owner_id is not None:
            memberships = [m for m in memberships if m.owner_id == owner_id]
        if not memberships:
            raise NotFoundError("Team membership")

        membership = memberships[0]
        await self.member_repo.delete(membership.id)

        await self.audit.log(
            actor_id=principal_id,
            action=AuditActions.TEAM_MEMBER_LEAVE,
            target_type="account",
            target_id=membership.owner_id
        )

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    async def invite_member(
        self,
        ctx: AccessContext,
        email: str,
        role: str = TeamRoles.MEMBER,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> PendingInvitation:
        """
        Create (or refresh) a pending invitation.
        Sending the email is left to the caller; the token is on the returned row.
        """
        account_id = await self._require_account_admin(ctx)
        self._validate_role(role)
        email = email.strip().lower()

        existing_user = await self.user_repo.get_by_email(email)
        if existing_user:
            if existing_user.id == account_id:
                raise ValidationError("You cannot invite yourself", "email")
            if await self.member_repo.is_member(account_id, existing_user.id):
                raise AlreadyExistsError("Team member", "email", email)

        expires_at = datetime.utcnow() + timedelta(days=settings.TEAM_INVITATION_EXPIRE_DAYS)
        invitation = await self.invitation_repo.get_pending_for_email(account_id, email)

        if invitation:
            invitation = await self.invitation_repo.update(invitation.id, {
                "token": generate_secure_token(),
                "expires_at": expires_at,
                "role": role,
                "first_name": first_name,
                "last_name": last_name
            })
        else:
            invitation = await self.invitation_repo.create({
                "owner_id": account_id,
                "invited_by": ctx.principal_id,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "role": role,
                "token": generate_secure_token(),
                "expires_at": expires_at
            })

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.TEAM_INVITE,
            target_type="invitation",
            target_id=invitation.id,
            target_email=email,
            details={"account_id": str(account_id), "role": role}
        )
        return invitation

    async def list_invitations(self, ctx: AccessContext) -> List[PendingInvitation]:
        account_id = await self._require_account_admin(ctx)
        return await self.invitation_repo.list_pending(account_id)

    async def revoke_invitation(self, ctx: AccessContext, invitation_id: uuid.UUID) -> PendingInvitation:
        account_id = await self._require_account_admin(ctx)

        invitation = await self.invitation_repo.get(invitation_id)
        if not invitation or invitation.owner_id != account_id:
            raise NotFoundError("Invitation", str(invitation_id))
        if invitation.status != InvitationStatus.PENDING:
            raise ValidationError(f"Invitation is already {invitation.status}")

        invitation = await self.invitation_repo.update(invitation.id, {"status": InvitationStatus.REVOKED})

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.TEAM_INVITE_REVOKE,
            target_type="invitation",
            target_id=invitation.id,
            target_email=invitation.email
        )
        return invitation

    async def check_invitation(
        self,
        token: str,
        email: str,
        now: Optional[datetime] = None
    ) -> PendingInvitation:
        """
        Return the invitation behind token if email may accept it now.
        An invitation found past its expiry is marked expired.
        """
        now = now or datetime.utcnow()

        invitation = await self.invitation_repo.get_by_token(token)
        if not invitation:
            raise NotFoundError("Invitation")
        if invitation.status != InvitationStatus.PENDING:
            raise ValidationError(f"Invitation is {invitation.status}")
        if invitation.expires_at <= now:
            await self.invitation_repo.update(invitation.id, {"status": InvitationStatus.EXPIRED})
            raise ValidationError("Invitation has expired")
        if email.lower() != invitation.email.lower():
            raise ForbiddenError("This invitation was sent to a different email address")
        return invitation

    async def accept_invitation(
        self,
        principal_id: uuid.UUID,
        token: str,
        now: Optional[datetime] = None,
        commit: bool = True
    ) -> TeamMember:
        """
        Join the inviting owner's team.

        A principal already on another owner's team is rejected, which keeps
        every member under a single owner. With commit=False the membership
        is only flushed and the caller commits, then calls record_join.
        """
        now = now or datetime.utcnow()

        user = await self.user_repo.get(principal_id)
        if not user:
            raise NotFoundError("User", str(principal_id))
        invitation = await self.check_invitation(token, user.email, now)

        owner_id = invitation.owner_id
        for membership in await self.member_repo.get_memberships_for_member(principal_id):
            if membership.owner_id != owner_id:
                raise AlreadyExistsError("Team membership for another account")

        membership = await self.add_member(owner_id, principal_id, invitation.role, commit=False)

        invitation.status = InvitationStatus.ACCEPTED
        invitation.accepted_at = now
        self.session.add(invitation)

        await self.notifications.notify_account(
            owner_id,
            NotificationTypes.TEAM,
            "New team member",
            f"{user.email} joined your team",
            {"member_id": str(principal_id), "role": invitation.role}
        )

        if not commit:
            await self.session.flush()
            return membership

        await self.session.commit()
        await self.session.refresh(membership)
        await self.record_join(principal_id, invitation)
        return membership

    async def record_join(self, principal_id: uuid.UUID, invitation: PendingInvitation) -> None:
        """Audit an accepted invitation once it is committed."""
        await self.audit.log(
            actor_id=principal_id,
            action=AuditActions.TEAM_MEMBER_JOIN,
            target_type="account",
            target_id=invitation.owner_id,
            details={"invitation_id": str(invitation.id), "role": invitation.role}
        )
