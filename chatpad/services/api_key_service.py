"""
API key service - issue, revoke and verify account API keys.
"""
import uuid
from datetime import datetime
from typing import Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from chatpad.core.security import generate_api_key, hash_api_key
from chatpad.models.agent import Agent, ApiKey
from chatpad.models.audit import AuditActions
from chatpad.repositories.base import BaseRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.audit_service import AuditService
from chatpad.services.resource_service import ResourceService

KEY_PREFIX_LENGTH = 8


class ApiKeyService:
    """Service for API key operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.key_repo = BaseRepository(ApiKey, session)
        self.resources = ResourceService(session, "api_keys")
        self.access = AccessService(session)
        self.audit = AuditService(session)

    async def create(
        self,
        ctx: AccessContext,
        name: str,
        agent_id: Optional[uuid.UUID] = None
    ) -> Tuple[ApiKey, str]:
        """Create a key. The plaintext is returned here and never again."""
        account_id = ctx.require_account()
        await self.access.authorize(ctx, "api_keys", "create", account_id)

        if not name or not name.strip():
            raise ValidationError("Name is required", "name")

        if agent_id is not None:
            agent = await self.session.get(Agent, agent_id)
            if not agent:
                raise NotFoundError("Agent", str(agent_id))
            if agent.user_id != account_id:
                raise ForbiddenError("Agent belongs to a different account")

        plaintext = generate_api_key()
        api_key = await self.key_repo.create({
            "user_id": account_id,
            "agent_id": agent_id,
            "name": name.strip(),
            "key_prefix": plaintext[:KEY_PREFIX_LENGTH],
            "key_hash": hash_api_key(plaintext)
        })

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.API_KEY_CREATE,
            target_type="api_key",
            target_id=api_key.id,
            details={"account_id": str(account_id), "name": api_key.name, "key_prefix": api_key.key_prefix}
        )
        return api_key, plaintext

    async def list(self, ctx: AccessContext, page: int = 1, limit: int = 20) -> dict:
        return await self.resources.list(ctx, page=page, limit=limit)

    async def revoke(self, ctx: AccessContext, key_id: uuid.UUID) -> ApiKey:
        """Revoke a key. Account admins only."""
        api_key = await self.resources.authorize_action(ctx, key_id, "revoke")
        if api_key.revoked_at is not None:
            return api_key

        api_key = await self.key_repo.update(api_key.id, {"revoked_at": datetime.utcnow()})

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.API_KEY_REVOKE,
            target_type="api_key",
            target_id=api_key.id,
            details={"account_id": str(api_key.user_id), "key_prefix": api_key.key_prefix}
        )
        return api_key

    async def verify(self, plaintext: str) -> Optional[ApiKey]:
        """The active key matching plaintext, or None. Touches last_used_at."""
        api_key = await self.key_repo.get_by_field("key_hash", hash_api_key(plaintext))
        if not api_key or api_key.revoked_at is not None:
            return None

        api_key.last_used_at = datetime.utcnow()
        self.session.add(api_key)
        await self.session.commit()
        await self.session.refresh(api_key)
        return api_key
