"""
Webhook routes.
Listing, updating and deleting webhooks goes through /api/resources/webhooks.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.webhook_service import WebhookService
from chatpad.services.access_service import AccessContext
from chatpad.schemas.webhook import WebhookCreate, WebhookSecretResponse, WebhookLogResponse
from chatpad.api.deps import get_access_context

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/", response_model=WebhookSecretResponse, status_code=201)
async def create_webhook(
    request: WebhookCreate,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Create a webhook. The signing secret is returned once."""
    return await WebhookService(session).create(
        ctx, request.name, request.url, request.events, request.active
    )


@router.post("/{webhook_id}/rotate-secret", response_model=WebhookSecretResponse)
async def rotate_webhook_secret(
    webhook_id: uuid.UUID,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Issue a new signing secret. Account admins only."""
    return await WebhookService(session).rotate_secret(ctx, webhook_id)


@router.get("/{webhook_id}/logs", response_model=List[WebhookLogResponse])
async def list_webhook_logs(
    webhook_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    return await WebhookService(session).list_logs(ctx, webhook_id, limit)
