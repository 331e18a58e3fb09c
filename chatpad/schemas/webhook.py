"""
Webhook and API key schemas.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field


class WebhookCreate(BaseModel):
    """Create a webhook subscription."""
    name: str
    url: str
    events: List[str]
    active: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "CRM Integration",
                "url": "https://api.mycrm.com/webhooks/chatpad",
                "events": ["lead.created", "booking.created"]
            }
        }


class WebhookResponse(BaseModel):
    """Webhook without its secret."""
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    url: str
    events: List[str]
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class WebhookSecretResponse(WebhookResponse):
    """Returned on creation and rotation only."""
    secret: str


class WebhookLogResponse(BaseModel):
    """Webhook delivery record."""
    id: uuid.UUID
    webhook_id: uuid.UUID
    event: str
    delivered: bool
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DispatchPayload(BaseModel):
    """Row change pushed to the internal dispatcher."""
    type: str  # insert, update, delete
    table: str
    schema_name: str = Field("public", alias="schema")
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True


class DispatchResult(BaseModel):
    event: Optional[str] = None
    webhooks: int = 0
    delivered: int = 0
    automations: int = 0


# API keys
class ApiKeyCreate(BaseModel):
    name: str
    agent_id: Optional[uuid.UUID] = None


class ApiKeyResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    agent_id: Optional[uuid.UUID] = None
    name: str
    key_prefix: str
    revoked_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApiKeyCreatedResponse(ApiKeyResponse):
    """The plaintext key is shown only in this response."""
    key: str
