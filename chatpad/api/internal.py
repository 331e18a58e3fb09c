"""
Internal dispatcher endpoint.
Receives row-change payloads from the outbox and fans them out to webhooks.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.core.exceptions import UnauthorizedError
from chatpad.services.webhook_service import WebhookService, verify_internal_secret
from chatpad.schemas.webhook import DispatchPayload, DispatchResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/internal", tags=["internal"])


@router.post("/dispatch", response_model=DispatchResult)
async def receive_dispatch(
    payload: DispatchPayload,
    x_internal_secret: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session)
):
    if not verify_internal_secret(x_internal_secret):
        logger.warning("Rejected dispatch for %s with bad internal secret", payload.table)
        raise UnauthorizedError("Invalid internal secret")

    return await WebhookService(session).fan_out(payload.model_dump(by_alias=True))
