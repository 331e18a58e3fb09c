"""
In-app notification model.
"""
import uuid
from datetime import datetime
from typing import Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Notification(SQLModel, table=True):
    """Per-user notification; each team member gets their own row."""
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    type: str = Field(index=True)  # lead, team, conversation, booking
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())
    read: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
