"""
Automation model - event/schedule driven workflows.
Execution happens outside this service; only the definitions live here.
"""
import uuid
from datetime import datetime
from typing import List, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Automation(SQLModel, table=True):
    __tablename__ = "automations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str
    trigger_type: str = Field(default="event", index=True)  # event, schedule, manual
    trigger_config: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())
    # Example: {"event": "lead.created"}
    steps: List[Dict[str, Any]] = Field(default_factory=list, sa_column=JSONColumn())
    enabled: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
