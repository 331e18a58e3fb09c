"""
Platform-level models: operator roles, subscriptions, impersonation.
These are orthogonal to team roles.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class PlatformRoles:
    MEMBER = "member"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    PILOT_SUPPORT = "pilot_support"

    ALL = (MEMBER, ADMIN, SUPER_ADMIN, PILOT_SUPPORT)
    OPERATORS = (SUPER_ADMIN, PILOT_SUPPORT)


class AdminPermission:
    VIEW_ACCOUNTS = "view_accounts"
    MANAGE_ACCOUNTS = "manage_accounts"
    VIEW_CONTENT = "view_content"
    MANAGE_CONTENT = "manage_content"
    VIEW_TEAM = "view_team"
    MANAGE_TEAM = "manage_team"
    VIEW_REVENUE = "view_revenue"
    MANAGE_REVENUE = "manage_revenue"
    VIEW_SETTINGS = "view_settings"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_AUDIT = "view_audit"
    IMPERSONATE_USERS = "impersonate_users"

    ALL = (
        VIEW_ACCOUNTS, MANAGE_ACCOUNTS,
        VIEW_CONTENT, MANAGE_CONTENT,
        VIEW_TEAM, MANAGE_TEAM,
        VIEW_REVENUE, MANAGE_REVENUE,
        VIEW_SETTINGS, MANAGE_SETTINGS,
        VIEW_AUDIT,
        IMPERSONATE_USERS,
    )


class UserRole(SQLModel, table=True):
    """
    Platform role of a user.
    admin_permissions grants per-capability operator access.
    """
    __tablename__ = "user_roles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, index=True)

    role: str = Field(default=PlatformRoles.MEMBER)
    permissions: List[str] = Field(default_factory=list, sa_column=JSONColumn())
    admin_permissions: List[str] = Field(default_factory=list, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class SubscriptionStatus:
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"

    # Statuses that make the holder an account owner
    OWNING = (ACTIVE, TRIALING, PAST_DUE)


class Subscription(SQLModel, table=True):
    """Billing subscription. An active row marks its user as an account owner."""
    __tablename__ = "subscriptions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    plan_id: str
    status: str = Field(default=SubscriptionStatus.ACTIVE, index=True)
    current_period_end: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ImpersonationSession(SQLModel, table=True):
    """
    Time-boxed support session.
    Honored only while is_active and within the configured window.
    """
    __tablename__ = "impersonation_sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    admin_user_id: uuid.UUID = Field(index=True)
    target_user_id: uuid.UUID = Field(index=True)

    reason: str
    is_active: bool = Field(default=True, index=True)
    meta_data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    started_at: datetime = Field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None
