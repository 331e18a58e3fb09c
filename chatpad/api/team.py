"""
Team API routes.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.database import get_session
from chatpad.services.team_service import TeamService
from chatpad.services.access_service import AccessContext
from chatpad.schemas.team import (
    InviteRequest, InvitationResponse, InvitationCreatedResponse,
    AcceptInvitationRequest, TeamMemberResponse, MembershipResponse,
    RoleUpdateRequest, LeaveRequest
)
from chatpad.schemas.common import MessageResponse
from chatpad.api.deps import get_current_user, get_access_context
from chatpad.models.user import User

router = APIRouter(prefix="/api/team", tags=["team"])


@router.get("/", response_model=List[TeamMemberResponse])
async def list_members(
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """List the owner and members of the current account."""
    return await TeamService(session).list_members(ctx)


@router.post("/invitations", response_model=InvitationCreatedResponse, status_code=201)
async def invite_member(
    request: InviteRequest,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    """Invite someone to the team. Account admins only."""
    return await TeamService(session).invite_member(
        ctx,
        email=request.email,
        role=request.role,
        first_name=request.first_name,
        last_name=request.last_name
    )


@router.get("/invitations", response_model=List[InvitationResponse])
async def list_invitations(
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    return await TeamService(session).list_invitations(ctx)


@router.delete("/invitations/{invitation_id}", response_model=InvitationResponse)
async def revoke_invitation(
    invitation_id: uuid.UUID,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    return await TeamService(session).revoke_invitation(ctx, invitation_id)


@router.post("/invitations/accept", response_model=MembershipResponse)
async def accept_invitation(
    request: AcceptInvitationRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Join the team that sent the invitation."""
    return await TeamService(session).accept_invitation(current_user.id, request.token)


@router.patch("/members/{member_id}", response_model=MembershipResponse)
async def update_member_role(
    member_id: uuid.UUID,
    request: RoleUpdateRequest,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    return await TeamService(session).update_member_role(ctx, member_id, request.role)


@router.delete("/members/{member_id}", response_model=MessageResponse)
async def remove_member(
    member_id: uuid.UUID,
    ctx: AccessContext = Depends(get_access_context),
    session: AsyncSession = Depends(get_session)
):
    await TeamService(session).remove_member(ctx, member_id)
    return {"message": "Team member removed"}


@router.post("/leave", response_model=MessageResponse)
async def leave_account(
    request: LeaveRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await TeamService(session).leave_account(current_user.id, request.owner_id)
    return {"message": "You left the team"}
