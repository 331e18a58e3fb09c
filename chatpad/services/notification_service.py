"""
Notification service - in-app notifications for an account's team.
"""
import uuid
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import NotFoundError
from chatpad.models.notification import Notification
from chatpad.repositories.dispatch_repo import NotificationRepository
from chatpad.repositories.team_repo import TeamMemberRepository


class NotificationTypes:
    LEAD = "lead"
    TEAM = "team"
    CONVERSATION = "conversation"
    BOOKING = "booking"


class NotificationService:
    """Service for notification operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)
        self.member_repo = TeamMemberRepository(session)

    async def notify_account(
        self,
        account_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        data: Optional[dict] = None
    ) -> List[Notification]:
        """
        One notification for the owner and one per team member.
        Flushed into the caller's transaction, not committed.
        """
        team = await self.member_repo.get_team(account_id)
        recipients = [account_id] + [m.member_id for m in team]

        notifications = []
        for user_id in recipients:
            notification = Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                data=data or {}
            )
            self.session.add(notification)
            notifications.append(notification)

        await self.session.flush()
        return notifications

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        return await self.notification_repo.get_for_user(user_id, unread_only, limit)

    async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get(notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification", str(notification_id))

        notification.read = True
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        unread = await self.notification_repo.get_for_user(user_id, unread_only=True, limit=1000)
        for notification in unread:
            notification.read = True
            self.session.add(notification)
        await self.session.commit()
        return len(unread)
