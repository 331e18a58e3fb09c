"""
Outbox, webhook and notification repositories.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.models.dispatch import DispatchEvent, DispatchStatus
from chatpad.models.notification import Notification
from chatpad.models.webhook import Webhook, WebhookLog
from chatpad.repositories.base import BaseRepository


class DispatchEventRepository(BaseRepository[DispatchEvent]):
    """Repository for DispatchEvent (outbox) operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(DispatchEvent, session)

    async def get_redeliverable(self, max_attempts: int, limit: int = 100) -> List[DispatchEvent]:
        """Pending or failed events that still have attempts left, oldest first."""
        query = select(DispatchEvent).where(
            DispatchEvent.status.in_([DispatchStatus.PENDING, DispatchStatus.FAILED]),
            DispatchEvent.attempts < max_attempts
        ).order_by(DispatchEvent.created_at).limit(limit)
        result = await self.session.exec(query)
        return list(result.all())


class WebhookRepository(BaseRepository[Webhook]):
    """Repository for Webhook operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Webhook, session)

    async def get_subscribed(self, account_id: uuid.UUID, event: str) -> List[Webhook]:
        """Active webhooks of an account that subscribe to the event."""
        query = select(Webhook).where(
            Webhook.user_id == account_id,
            Webhook.active == True
        )
        result = await self.session.exec(query)
        # events is a JSON list; filter in Python to stay dialect-neutral
        return [w for w in result.all() if event in (w.events or [])]


class WebhookLogRepository(BaseRepository[WebhookLog]):
    """Repository for WebhookLog operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(WebhookLog, session)

    async def get_for_webhook(self, webhook_id: uuid.UUID, limit: int = 50) -> List[WebhookLog]:
        query = select(WebhookLog).where(
            WebhookLog.webhook_id == webhook_id
        ).order_by(WebhookLog.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return list(result.all())


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def get_for_user(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read == False)
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return list(result.all())
