"""
Team membership and invitation repositories.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.models.team import TeamMember, PendingInvitation, InvitationStatus, TeamRoles
from chatpad.repositories.base import BaseRepository


class TeamMemberRepository(BaseRepository[TeamMember]):
    """Repository for TeamMember (owner <-> member) operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(TeamMember, session)

    async def get_membership(
        self,
        owner_id: uuid.UUID,
        member_id: uuid.UUID
    ) -> Optional[TeamMember]:
        """Get specific membership record."""
        query = select(TeamMember).where(
            TeamMember.owner_id == owner_id,
            TeamMember.member_id == member_id
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_memberships_for_member(self, member_id: uuid.UUID) -> List[TeamMember]:
        """All memberships of a user, earliest first (owner_id breaks ties)."""
        query = select(TeamMember).where(
            TeamMember.member_id == member_id
        ).order_by(TeamMember.created_at, TeamMember.owner_id)
        result = await self.session.exec(query)
        return list(result.all())

    async def get_team(self, owner_id: uuid.UUID) -> List[TeamMember]:
        """All members of an owner's account."""
        query = select(TeamMember).where(
            TeamMember.owner_id == owner_id
        ).order_by(TeamMember.created_at)
        result = await self.session.exec(query)
        return list(result.all())

    async def is_member(self, owner_id: uuid.UUID, member_id: uuid.UUID) -> bool:
        return await self.get_membership(owner_id, member_id) is not None

    async def is_admin(self, owner_id: uuid.UUID, member_id: uuid.UUID) -> bool:
        membership = await self.get_membership(owner_id, member_id)
        return membership is not None and membership.role == TeamRoles.ADMIN


class PendingInvitationRepository(BaseRepository[PendingInvitation]):
    """Repository for PendingInvitation operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(PendingInvitation, session)

    async def get_by_token(self, token: str) -> Optional[PendingInvitation]:
        return await self.get_by_field("token", token)

    async def get_pending_for_email(
        self,
        owner_id: uuid.UUID,
        email: str
    ) -> Optional[PendingInvitation]:
        query = select(PendingInvitation).where(
            PendingInvitation.owner_id == owner_id,
            PendingInvitation.email == email,
            PendingInvitation.status == InvitationStatus.PENDING
        )
        result = await self.session.exec(query)
        return result.first()

    async def list_pending(self, owner_id: uuid.UUID) -> List[PendingInvitation]:
        query = select(PendingInvitation).where(
            PendingInvitation.owner_id == owner_id,
            PendingInvitation.status == InvitationStatus.PENDING
        ).order_by(PendingInvitation.created_at.desc())
        result = await self.session.exec(query)
        return list(result.all())
