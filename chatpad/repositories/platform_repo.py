"""
Platform repositories: roles, subscriptions, impersonation sessions.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from chatpad.models.platform import (
    UserRole, Subscription, SubscriptionStatus, ImpersonationSession
)
from chatpad.repositories.base import BaseRepository


class UserRoleRepository(BaseRepository[UserRole]):
    """Repository for UserRole operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(UserRole, session)

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[UserRole]:
        query = select(UserRole).where(UserRole.user_id == user_id)
        result = await self.session.exec(query)
        return result.first()


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for Subscription operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Subscription, session)

    async def has_active_subscription(self, user_id: uuid.UUID) -> bool:
        """True if the user holds a subscription that makes them an account owner."""
        query = select(func.count()).select_from(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.status.in_(SubscriptionStatus.OWNING)
        )
        result = await self.session.exec(query)
        return result.one() > 0


class ImpersonationSessionRepository(BaseRepository[ImpersonationSession]):
    """Repository for ImpersonationSession operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ImpersonationSession, session)

    async def get_valid_session(
        self,
        admin_user_id: uuid.UUID,
        started_after: datetime
    ) -> Optional[ImpersonationSession]:
        """
        Most recent session that is flagged active, not ended,
        and started after the cutoff.
        """
        query = select(ImpersonationSession).where(
            ImpersonationSession.admin_user_id == admin_user_id,
            ImpersonationSession.is_active == True,
            ImpersonationSession.ended_at == None,
            ImpersonationSession.started_at > started_after
        ).order_by(ImpersonationSession.started_at.desc())
        result = await self.session.exec(query)
        return result.first()

    async def get_active_sessions(self, admin_user_id: uuid.UUID) -> List[ImpersonationSession]:
        """Sessions still flagged active, regardless of age."""
        query = select(ImpersonationSession).where(
            ImpersonationSession.admin_user_id == admin_user_id,
            ImpersonationSession.is_active == True
        )
        result = await self.session.exec(query)
        return list(result.all())

    async def count_started_since(self, admin_user_id: uuid.UUID, since: datetime) -> int:
        query = select(func.count()).select_from(ImpersonationSession).where(
            ImpersonationSession.admin_user_id == admin_user_id,
            ImpersonationSession.started_at >= since
        )
        result = await self.session.exec(query)
        return result.one()
