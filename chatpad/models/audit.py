"""
Audit log model - append-only trail of security-sensitive actions.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class AdminAuditLog(SQLModel, table=True):
    """
    Immutable audit record.
    No foreign keys: entries must outlive the actors and targets they describe.
    """
    __tablename__ = "admin_audit_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    admin_user_id: Optional[uuid.UUID] = Field(default=None, index=True)  # actor

    # Action details
    action: str = Field(index=True)
    target_type: str = Field(index=True)
    target_id: Optional[uuid.UUID] = Field(default=None, index=True)
    target_email: Optional[str] = None
    success: bool = Field(default=True)

    details: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Request context
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


# Action constants for consistency
class AuditActions:
    # Team
    TEAM_INVITE = "team.invite"
    TEAM_INVITE_REVOKE = "team.invite_revoke"
    TEAM_MEMBER_JOIN = "team.member_join"
    TEAM_ROLE_CHANGE = "team.role_change"
    TEAM_MEMBER_REMOVE = "team.member_remove"
    TEAM_MEMBER_LEAVE = "team.member_leave"

    # Platform roles
    PLATFORM_ROLE_CHANGE = "platform.role_change"

    # Impersonation
    IMPERSONATION_START = "impersonation.start"
    IMPERSONATION_END = "impersonation.end"

    # API keys
    API_KEY_CREATE = "api_key.create"
    API_KEY_REVOKE = "api_key.revoke"

    # Webhooks
    WEBHOOK_SECRET_ROTATE = "webhook.rotate_secret"

    # Accounts
    ACCOUNT_DELETE = "account.delete"
