"""
Outbox of row changes waiting to be pushed to the internal dispatcher.
Rows are written in the same transaction as the change they describe.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class DispatchStatus:
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"


class DispatchEvent(SQLModel, table=True):
    __tablename__ = "dispatch_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    account_id: Optional[uuid.UUID] = Field(default=None, index=True)

    event_type: str  # insert, update, delete
    table_name: str = Field(index=True)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Delivery status
    status: str = Field(default=DispatchStatus.PENDING, index=True)
    attempts: int = Field(default=0)
    last_error: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    delivered_at: Optional[datetime] = None
