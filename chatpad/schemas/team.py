"""
Team schemas.
"""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr


class InviteRequest(BaseModel):
    """Invite someone to the current account."""
    email: EmailStr
    role: str = "member"
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jacob@company.com",
                "role": "member",
                "first_name": "Jacob"
            }
        }


class InvitationResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    status: str
    created_at: datetime
    expires_at: datetime

    class Config:
        from_attributes = True


class InvitationCreatedResponse(InvitationResponse):
    """Returned once on creation; carries the token for the invite link."""
    token: str


class AcceptInvitationRequest(BaseModel):
    token: str


class TeamMemberResponse(BaseModel):
    user_id: uuid.UUID
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: str  # owner, admin, member
    joined_at: Optional[datetime] = None


class MembershipResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    member_id: uuid.UUID
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class RoleUpdateRequest(BaseModel):
    role: str


class LeaveRequest(BaseModel):
    owner_id: Optional[uuid.UUID] = None
