"""
Account API routes.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.account_service import AccountService
from chatpad.services.access_service import AccessContext
from chatpad.schemas.account import AccountContextResponse, AccountDeleteResponse
from chatpad.api.deps import get_access_context

router = APIRouter(prefix="/api/account", tags=["account"])


@router.get("/", response_model=AccountContextResponse)
async def get_account_context(
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Resolved account of the caller and their rights in it."""
    return await AccountService(session).get_context(ctx)


@router.delete("/", response_model=AccountDeleteResponse)
async def delete_account(
    account_id: Optional[uuid.UUID] = None,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Delete the caller's own account, or another one with manage_accounts."""
    return await AccountService(session).delete_account(ctx.principal_id, account_id)
