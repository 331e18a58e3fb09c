"""
Conversation and message models.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Conversation(SQLModel, table=True):
    """Widget chat session between a visitor and an agent."""
    __tablename__ = "conversations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    agent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="agents.id", ondelete="CASCADE", index=True)

    status: str = Field(default="active", index=True)  # active, human_takeover, closed
    meta_data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Message(SQLModel, table=True):
    """Single message inside a conversation."""
    __tablename__ = "messages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    conversation_id: uuid.UUID = Field(foreign_key="conversations.id", ondelete="CASCADE", index=True)

    role: str  # user, assistant, human
    content: str
    meta_data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
