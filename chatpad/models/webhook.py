"""
Webhook models - event dispatch for integrations.
Allows external systems to subscribe to events.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Webhook(SQLModel, table=True):
    """
    Webhook subscription for event notifications.
    External systems can receive real-time updates.
    """
    __tablename__ = "webhooks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # Webhook config
    name: str
    url: str
    secret: str  # For signature verification

    # Events to subscribe to
    events: List[str] = Field(default_factory=list, sa_column=JSONColumn())
    # Example: ["lead.created", "conversation.updated"]

    # Status
    active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class WebhookLog(SQLModel, table=True):
    """
    Record of webhook delivery attempts.
    Tracks success/failure for debugging.
    """
    __tablename__ = "webhook_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    webhook_id: uuid.UUID = Field(foreign_key="webhooks.id", ondelete="CASCADE", index=True)

    # Event info
    event: str
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Delivery status
    delivered: bool = Field(default=False)
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    error_message: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Available webhook events
class WebhookEvents:
    # Leads
    LEAD_CREATED = "lead.created"
    LEAD_UPDATED = "lead.updated"
    LEAD_DELETED = "lead.deleted"

    # Conversations
    CONVERSATION_CREATED = "conversation.created"
    CONVERSATION_UPDATED = "conversation.updated"
    CONVERSATION_DELETED = "conversation.deleted"

    # Messages
    MESSAGE_CREATED = "message.created"
    MESSAGE_UPDATED = "message.updated"
    MESSAGE_DELETED = "message.deleted"

    # Scheduling
    BOOKING_CREATED = "booking.created"
    BOOKING_UPDATED = "booking.updated"
    BOOKING_DELETED = "booking.deleted"
    PROPERTY_CREATED = "property.created"
    PROPERTY_UPDATED = "property.updated"
    PROPERTY_DELETED = "property.deleted"

    _ENTITY_BY_TABLE = {
        "leads": "lead",
        "conversations": "conversation",
        "messages": "message",
        "calendar_events": "booking",
        "properties": "property",
    }
    _VERB_BY_TYPE = {"insert": "created", "update": "updated", "delete": "deleted"}

    @classmethod
    def for_change(cls, table: str, change_type: str) -> Optional[str]:
        """Event name for a row change, or None if the table emits no events."""
        entity = cls._ENTITY_BY_TABLE.get(table)
        verb = cls._VERB_BY_TYPE.get(change_type)
        if not entity or not verb:
            return None
        return f"{entity}.{verb}"
