"""
Lead model - contact captured by the chat widget or entered by the team.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Lead(SQLModel, table=True):
    """
    Lead entity - represents a potential customer/contact.
    Scoped to an account and optionally linked to the conversation it came from.
    """
    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    conversation_id: Optional[uuid.UUID] = Field(default=None, foreign_key="conversations.id", ondelete="SET NULL", index=True)

    # Basic info
    name: Optional[str] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None
    company: Optional[str] = None

    # Qualification
    status: str = Field(default="new", index=True)  # new, contacted, qualified, converted, lost

    # Custom form data captured by the widget
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
