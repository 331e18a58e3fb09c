"""
Team membership models.
An owner's account is shared with members through team_members rows.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint, CheckConstraint


class TeamRoles:
    ADMIN = "admin"
    MEMBER = "member"

    ALL = (ADMIN, MEMBER)


class TeamMember(SQLModel, table=True):
    """
    Owner <-> member relation with an intra-account role.
    A member may not be their own owner.
    """
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("owner_id", "member_id", name="uq_team_members_owner_member"),
        CheckConstraint("owner_id != member_id", name="ck_team_members_not_self"),
        CheckConstraint("role IN ('admin', 'member')", name="ck_team_members_role"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    member_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    role: str = Field(default=TeamRoles.MEMBER)  # admin, member

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class InvitationStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


class PendingInvitation(SQLModel, table=True):
    """
    Invitation to join an owner's team.
    Accepting it inserts the TeamMember row.
    """
    __tablename__ = "pending_invitations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    invited_by: uuid.UUID

    email: str = Field(index=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = Field(default=TeamRoles.MEMBER)

    token: str = Field(unique=True, index=True)
    status: str = Field(default=InvitationStatus.PENDING, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime
    accepted_at: Optional[datetime] = None
