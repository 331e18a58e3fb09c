"""
Account service - account context and account deletion.
"""
import logging
import uuid
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import ForbiddenError, NotFoundError
from chatpad.models.agent import Agent, KnowledgeSource, ApiKey, CustomDomain
from chatpad.models.audit import AuditActions
from chatpad.models.automation import Automation
from chatpad.models.conversation import Conversation, Message
from chatpad.models.lead import Lead
from chatpad.models.notification import Notification
from chatpad.models.platform import AdminPermission, Subscription, UserRole
from chatpad.models.scheduling import Location, Property, CalendarEvent, ScheduledReport
from chatpad.models.team import TeamMember, PendingInvitation
from chatpad.models.user import User, Profile
from chatpad.models.webhook import Webhook, WebhookLog
from chatpad.repositories.base import BaseRepository
from chatpad.repositories.user_repo import UserRepository, ProfileRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.audit_service import AuditService

logger = logging.getLogger(__name__)

# Tenant tables, children before parents
TENANT_MODELS = (
    CalendarEvent,
    Property,
    Lead,
    Message,
    Conversation,
    KnowledgeSource,
    ApiKey,
    Agent,
    ScheduledReport,
    CustomDomain,
    Location,
    Automation,
    Notification,
)


class AccountService:
    """Service for account-level operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.profile_repo = ProfileRepository(session)
        self.access = AccessService(session)
        self.audit = AuditService(session)

    async def get_context(self, ctx: AccessContext) -> dict:
        """Where the caller's requests land and what they may do there."""
        account_id = ctx.account_id
        is_owner = account_id is not None and account_id == ctx.acting_id
        is_admin = account_id is not None and await self.access.is_account_admin(account_id, ctx.acting_id)

        return {
            "principal_id": ctx.principal_id,
            "acting_id": ctx.acting_id,
            "account_id": account_id,
            "is_owner": is_owner,
            "is_account_admin": is_admin,
            "impersonation_session_id": ctx.impersonation_session_id,
            "platform_role": await self.access.get_platform_role(ctx.principal_id)
        }

    async def _delete_webhooks(self, account_id: uuid.UUID) -> int:
        result = await self.session.exec(select(Webhook).where(Webhook.user_id == account_id))
        webhooks = list(result.all())
        log_repo = BaseRepository(WebhookLog, self.session)
        for webhook in webhooks:
            await log_repo.delete_where("webhook_id", webhook.id)
            await self.session.delete(webhook)
        await self.session.flush()
        return len(webhooks)

    async def delete_account(
        self,
        principal_id: uuid.UUID,
        account_id: Optional[uuid.UUID] = None
    ) -> dict:
        """
        Delete an account and everything it owns.

        Allowed for the owner, or for holders of manage_accounts. Tenant rows
        go first, then team relations, then the user itself.
        """
        account_id = account_id or principal_id
        if account_id != principal_id:
            if not await self.access.has_admin_permission(principal_id, AdminPermission.MANAGE_ACCOUNTS):
                raise ForbiddenError("Only the account owner can delete this account")

        user = await self.user_repo.get(account_id)
        if not user:
            raise NotFoundError("Account", str(account_id))
        email = user.email

        counts = {"webhooks": await self._delete_webhooks(account_id)}
        for model in TENANT_MODELS:
            counts[model.__tablename__] = await BaseRepository(model, self.session).delete_where(
                "user_id", account_id
            )

        member_repo = BaseRepository(TeamMember, self.session)
        counts["team_members"] = (
            await member_repo.delete_where("owner_id", account_id)
            + await member_repo.delete_where("member_id", account_id)
        )

        await BaseRepository(PendingInvitation, self.session).delete_where("owner_id", account_id)
        await BaseRepository(Subscription, self.session).delete_where("user_id", account_id)
        await BaseRepository(Profile, self.session).delete_where("user_id", account_id)
        await BaseRepository(UserRole, self.session).delete_where("user_id", account_id)

        await self.session.delete(user)
        await self.session.commit()

        logger.info("Account %s deleted by %s", account_id, principal_id)

        await self.audit.log(
            actor_id=principal_id,
            action=AuditActions.ACCOUNT_DELETE,
            target_type="account",
            target_id=account_id,
            target_email=email,
            details={"deleted": counts}
        )
        return {"account_id": account_id, "deleted": counts}
