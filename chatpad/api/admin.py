"""
Platform administration API routes: roles, impersonation, audit log.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.platform_role_service import PlatformRoleService
from chatpad.services.impersonation_service import ImpersonationService
from chatpad.services.audit_service import AuditService
from chatpad.schemas.admin import (
    PlatformRoleUpdate, PlatformRoleResponse, PermissionCheckResponse,
    ImpersonationStartRequest, ImpersonationSessionResponse,
    ImpersonationEndRequest, ImpersonationEndResponse, AuditLogResponse
)
from chatpad.schemas.common import PaginatedResponse
from chatpad.api.deps import get_current_user, get_client_info
from chatpad.models.user import User

router = APIRouter(prefix="/api/admin", tags=["admin"])


# -----------------------------------------------------------------------------
# Platform roles
# -----------------------------------------------------------------------------

@router.get("/roles/{user_id}", response_model=PlatformRoleResponse)
async def get_role(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await PlatformRoleService(session).get_role(current_user.id, user_id)


@router.put("/roles/{user_id}", response_model=PlatformRoleResponse)
async def set_role(
    user_id: uuid.UUID,
    request: PlatformRoleUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Grant a platform role and capabilities. Requires manage_team."""
    return await PlatformRoleService(session).set_role(
        current_user.id, user_id, request.role, request.admin_permissions
    )


@router.get("/permissions/{permission}", response_model=PermissionCheckResponse)
async def check_permission(
    permission: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Whether the caller holds a platform capability."""
    granted = await PlatformRoleService(session).check_permission(current_user.id, permission)
    return {"permission": permission, "granted": granted}


# -----------------------------------------------------------------------------
# Impersonation
# -----------------------------------------------------------------------------

@router.post("/impersonation", response_model=ImpersonationSessionResponse, status_code=201)
async def start_impersonation(
    body: ImpersonationStartRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    client_info = get_client_info(request)
    return await ImpersonationService(session).start(
        current_user.id,
        body.target_user_id,
        body.reason,
        ip_address=client_info["ip_address"],
        user_agent=client_info["user_agent"]
    )


@router.get("/impersonation", response_model=Optional[ImpersonationSessionResponse])
async def get_active_impersonation(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """The caller's valid session, or null once it has ended or expired."""
    return await ImpersonationService(session).get_active(current_user.id)


@router.post("/impersonation/end", response_model=ImpersonationEndResponse)
async def end_impersonation(
    body: ImpersonationEndRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    client_info = get_client_info(request)
    return await ImpersonationService(session).end(
        current_user.id,
        body.session_id,
        ip_address=client_info["ip_address"],
        user_agent=client_info["user_agent"]
    )


@router.post("/impersonation/end-all")
async def end_all_impersonations(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    ended = await ImpersonationService(session).end_all(current_user.id)
    return {"ended": ended}


# -----------------------------------------------------------------------------
# Audit log
# -----------------------------------------------------------------------------

@router.get("/audit-log", response_model=PaginatedResponse[AuditLogResponse])
async def list_audit_log(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    actor_id: Optional[uuid.UUID] = None,
    action: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Search the audit log, newest first. Requires view_audit."""
    return await AuditService(session).list_entries(
        current_user.id,
        actor_id=actor_id,
        action=action,
        target_id=target_id,
        page=page,
        limit=limit
    )
