"""
Account and notification schemas.
"""
import uuid
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel


class AccountContextResponse(BaseModel):
    """Resolved tenant context of the caller."""
    principal_id: uuid.UUID
    acting_id: uuid.UUID
    account_id: Optional[uuid.UUID] = None
    is_owner: bool
    is_account_admin: bool
    impersonation_session_id: Optional[uuid.UUID] = None
    platform_role: Optional[str] = None


class AccountDeleteResponse(BaseModel):
    account_id: uuid.UUID
    deleted: Dict[str, int]


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    data: Dict[str, Any] = {}
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True
