"""
Generic account-scoped resource routes.
Which table and which checks apply come from the resource policy.
"""
import uuid
from typing import Optional, Dict, Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.resource_service import ResourceService
from chatpad.services.access_service import AccessContext
from chatpad.services.dispatch_service import EventDispatcher
from chatpad.schemas.common import MessageResponse, PaginatedResponse
from chatpad.api.deps import get_access_context, get_event_dispatcher

router = APIRouter(prefix="/api/resources", tags=["resources"])

# Query parameters that are not column filters
RESERVED_PARAMS = ("page", "limit", "account_id")


def _schedule_dispatch(
    service: ResourceService,
    background_tasks: BackgroundTasks,
    dispatcher: EventDispatcher
) -> None:
    event_ids = service.pending_dispatch
    if event_ids:
        background_tasks.add_task(dispatcher.deliver_many, event_ids)


@router.post("/{resource_type}", status_code=201)
async def create_resource(
    resource_type: str,
    background_tasks: BackgroundTasks,
    data: Dict[str, Any] = Body(...),
    account_id: Optional[uuid.UUID] = None,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher)
):
    service = ResourceService(session, resource_type)
    row = await service.create(ctx, data, account_id=account_id)
    _schedule_dispatch(service, background_tasks, dispatcher)
    return service.serialize(row)


@router.get("/{resource_type}", response_model=PaginatedResponse[Dict[str, Any]])
async def list_resources(
    resource_type: str,
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    account_id: Optional[uuid.UUID] = None,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """List visible rows. Extra query parameters filter on equal column values."""
    service = ResourceService(session, resource_type)
    filters = {k: v for k, v in request.query_params.items() if k not in RESERVED_PARAMS}

    result = await service.list(ctx, filters=filters, account_id=account_id, page=page, limit=limit)
    result["items"] = [service.serialize(row) for row in result["items"]]
    return result


@router.get("/{resource_type}/{resource_id}")
async def get_resource(
    resource_type: str,
    resource_id: uuid.UUID,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    service = ResourceService(session, resource_type)
    return service.serialize(await service.get(ctx, resource_id))


@router.patch("/{resource_type}/{resource_id}")
async def update_resource(
    resource_type: str,
    resource_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    data: Dict[str, Any] = Body(...),
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher)
):
    service = ResourceService(session, resource_type)
    row = await service.update(ctx, resource_id, data)
    _schedule_dispatch(service, background_tasks, dispatcher)
    return service.serialize(row)


@router.delete("/{resource_type}/{resource_id}", response_model=MessageResponse)
async def delete_resource(
    resource_type: str,
    resource_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher)
):
    service = ResourceService(session, resource_type)
    await service.delete(ctx, resource_id)
    _schedule_dispatch(service, background_tasks, dispatcher)
    return {"message": f"{resource_type} {resource_id} deleted"}
