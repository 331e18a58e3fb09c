"""
Webhook service - customer webhook subscriptions and signed delivery.
"""
import hashlib
import hmac
import json
import logging
import uuid
from typing import Optional, List, Dict, Any

import httpx
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.core.exceptions import ValidationError
from chatpad.core.security import generate_secure_token
from chatpad.models.audit import AuditActions
from chatpad.models.automation import Automation
from chatpad.models.webhook import Webhook, WebhookLog, WebhookEvents
from chatpad.repositories.dispatch_repo import WebhookRepository, WebhookLogRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.audit_service import AuditService
from chatpad.services.resource_service import ResourceService

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"


def sign_payload(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_internal_secret(provided: Optional[str]) -> bool:
    """Constant-time check of the shared dispatcher secret."""
    if not provided:
        return False
    return hmac.compare_digest(provided, settings.INTERNAL_WEBHOOK_SECRET)


class WebhookService:
    """Service for webhook operations."""

    def __init__(self, session: AsyncSession, client: Optional[httpx.AsyncClient] = None):
        self.session = session
        self.client = client
        self.webhook_repo = WebhookRepository(session)
        self.log_repo = WebhookLogRepository(session)
        self.resources = ResourceService(session, "webhooks")
        self.access = AccessService(session)
        self.audit = AuditService(session)

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def create(
        self,
        ctx: AccessContext,
        name: str,
        url: str,
        events: List[str],
        active: bool = True
    ) -> Webhook:
        """Create a webhook with a generated signing secret."""
        account_id = ctx.require_account()
        await self.access.authorize(ctx, "webhooks", "create", account_id)

        if not url.startswith(("http://", "https://")):
            raise ValidationError("URL must be http or https", "url")

        return await self.webhook_repo.create({
            "user_id": account_id,
            "name": name,
            "url": url,
            "secret": generate_secure_token(),
            "events": list(events),
            "active": active
        })

    async def rotate_secret(self, ctx: AccessContext, webhook_id: uuid.UUID) -> Webhook:
        """Replace the signing secret. Account admins only."""
        webhook = await self.resources.authorize_action(ctx, webhook_id, "rotate_secret")
        webhook = await self.webhook_repo.update(webhook.id, {"secret": generate_secure_token()})

        await self.audit.log(
            actor_id=ctx.principal_id,
            action=AuditActions.WEBHOOK_SECRET_ROTATE,
            target_type="webhook",
            target_id=webhook.id,
            details={"account_id": str(webhook.user_id)}
        )
        return webhook

    async def list_logs(self, ctx: AccessContext, webhook_id: uuid.UUID, limit: int = 50) -> List[WebhookLog]:
        webhook = await self.resources.get(ctx, webhook_id)
        return await self.log_repo.get_for_webhook(webhook.id, limit)

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    async def _post(self, url: str, body: bytes, headers: Dict[str, str]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(url, content=body, headers=headers)

        async with httpx.AsyncClient(timeout=settings.DISPATCH_TIMEOUT_SECONDS) as client:
            return await client.post(url, content=body, headers=headers)

    async def deliver(self, webhook: Webhook, event: str, payload: Dict[str, Any]) -> WebhookLog:
        """POST one signed payload and record the attempt."""
        body = json.dumps({"event": event, "data": payload}, default=str).encode()
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(webhook.secret, body),
            EVENT_HEADER: event,
        }

        log = WebhookLog(webhook_id=webhook.id, event=event, payload=payload)
        try:
            response = await self._post(webhook.url, body, headers)
            log.status_code = response.status_code
            log.response_body = response.text[:1000]
            log.delivered = response.is_success
            if not response.is_success:
                log.error_message = f"HTTP {response.status_code}"
        except httpx.HTTPError as e:
            log.error_message = str(e) or e.__class__.__name__

        if not log.delivered:
            logger.warning("Webhook %s delivery of %s failed: %s", webhook.id, event, log.error_message)

        self.session.add(log)
        await self.session.commit()
        return log

    async def count_triggered_automations(self, account_id: uuid.UUID, event: str) -> int:
        """Enabled event automations of the account listening for event."""
        query = select(Automation).where(
            Automation.user_id == account_id,
            Automation.enabled == True,
            Automation.trigger_type == "event"
        )
        result = await self.session.exec(query)
        return len([a for a in result.all() if (a.trigger_config or {}).get("event") == event])

    async def fan_out(self, payload: Dict[str, Any]) -> dict:
        """
        Route a dispatched row change to the account's subscribed webhooks.
        Individual delivery failures are recorded, not raised.
        """
        table = payload.get("table")
        change_type = payload.get("type")
        event = WebhookEvents.for_change(table, change_type)
        if not event:
            return {"event": None, "webhooks": 0, "delivered": 0, "automations": 0}

        row = payload.get("record") or payload.get("old_record") or {}
        if not row.get("user_id"):
            return {"event": event, "webhooks": 0, "delivered": 0, "automations": 0}
        account_id = uuid.UUID(str(row["user_id"]))

        webhooks = await self.webhook_repo.get_subscribed(account_id, event)
        delivered = 0
        for webhook in webhooks:
            log = await self.deliver(webhook, event, payload)
            if log.delivered:
                delivered += 1

        return {
            "event": event,
            "webhooks": len(webhooks),
            "delivered": delivered,
            "automations": await self.count_triggered_automations(account_id, event)
        }
