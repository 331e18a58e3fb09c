"""
API key routes.
"""
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.api_key_service import ApiKeyService
from chatpad.services.access_service import AccessContext
from chatpad.schemas.webhook import ApiKeyCreate, ApiKeyResponse, ApiKeyCreatedResponse
from chatpad.schemas.common import PaginatedResponse
from chatpad.api.deps import get_access_context

router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])


@router.post("/", response_model=ApiKeyCreatedResponse, status_code=201)
async def create_api_key(
    request: ApiKeyCreate,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Create an API key. The plaintext key is only returned here."""
    api_key, plaintext = await ApiKeyService(session).create(ctx, request.name, request.agent_id)
    return ApiKeyCreatedResponse(**ApiKeyResponse.model_validate(api_key).model_dump(), key=plaintext)


@router.get("/", response_model=PaginatedResponse[ApiKeyResponse])
async def list_api_keys(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    result = await ApiKeyService(session).list(ctx, page=page, limit=limit)
    result["items"] = [ApiKeyResponse.model_validate(k) for k in result["items"]]
    return result


@router.post("/{key_id}/revoke", response_model=ApiKeyResponse)
async def revoke_api_key(
    key_id: uuid.UUID,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Revoke an API key. Account admins only."""
    return await ApiKeyService(session).revoke(ctx, key_id)
