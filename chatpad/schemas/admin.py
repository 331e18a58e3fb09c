"""
Platform administration schemas: roles, impersonation, audit log.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel


class PlatformRoleUpdate(BaseModel):
    role: str
    admin_permissions: List[str] = []

    class Config:
        json_schema_extra = {
            "example": {
                "role": "admin",
                "admin_permissions": ["view_accounts", "view_audit"]
            }
        }


class PlatformRoleResponse(BaseModel):
    user_id: uuid.UUID
    role: str
    admin_permissions: List[str] = []

    class Config:
        from_attributes = True


class PermissionCheckResponse(BaseModel):
    permission: str
    granted: bool


class ImpersonationStartRequest(BaseModel):
    target_user_id: uuid.UUID
    reason: str


class ImpersonationSessionResponse(BaseModel):
    session_id: uuid.UUID
    target_user_id: uuid.UUID
    target_display_name: Optional[str] = None
    target_email: Optional[str] = None
    started_at: datetime
    expires_at: datetime


class ImpersonationEndRequest(BaseModel):
    session_id: uuid.UUID


class ImpersonationEndResponse(BaseModel):
    success: bool
    already_ended: bool = False


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    admin_user_id: Optional[uuid.UUID] = None
    action: str
    target_type: str
    target_id: Optional[uuid.UUID] = None
    target_email: Optional[str] = None
    success: bool
    details: Dict[str, Any] = {}
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
