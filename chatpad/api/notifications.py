"""
Notification routes. Every user sees only their own notifications.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.notification_service import NotificationService
from chatpad.schemas.account import NotificationResponse
from chatpad.api.deps import get_current_user
from chatpad.models.user import User

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await NotificationService(session).list_for_user(current_user.id, unread_only, limit)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await NotificationService(session).mark_read(current_user.id, notification_id)


@router.post("/read-all")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    updated = await NotificationService(session).mark_all_read(current_user.id)
    return {"updated": updated}
