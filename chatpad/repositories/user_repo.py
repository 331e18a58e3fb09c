"""
User and Profile repositories.
"""
import uuid
from typing import Optional
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.models.user import User, Profile
from chatpad.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email.lower())
        result = await self.session.exec(query)
        return result.first()

    async def update_last_login(self, user_id: uuid.UUID) -> None:
        """Update user's last login timestamp."""
        user = await self.get(user_id)
        if user:
            user.last_login_at = datetime.utcnow()
            self.session.add(user)
            await self.session.commit()


class ProfileRepository(BaseRepository[Profile]):
    """Repository for Profile operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Profile, session)

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Profile]:
        query = select(Profile).where(Profile.user_id == user_id)
        result = await self.session.exec(query)
        return result.first()
