"""
Scheduling and reporting models: locations, properties, bookings, reports.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Location(SQLModel, table=True):
    """Physical location (community, office) with its own calendar."""
    __tablename__ = "locations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str
    address: Optional[str] = None
    timezone: str = Field(default="UTC")
    phone: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Property(SQLModel, table=True):
    """Home/listing available at a location."""
    __tablename__ = "properties"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    location_id: Optional[uuid.UUID] = Field(default=None, foreign_key="locations.id", ondelete="SET NULL", index=True)

    name: str
    address: Optional[str] = None
    status: str = Field(default="available", index=True)  # available, pending, sold
    price: Optional[float] = None
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CalendarEvent(SQLModel, table=True):
    """Booked appointment (tour, call) at a location."""
    __tablename__ = "calendar_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    location_id: Optional[uuid.UUID] = Field(default=None, foreign_key="locations.id", ondelete="SET NULL", index=True)
    lead_id: Optional[uuid.UUID] = Field(default=None, foreign_key="leads.id", ondelete="SET NULL", index=True)

    title: str
    start_time: datetime
    end_time: datetime
    status: str = Field(default="confirmed")  # confirmed, cancelled, completed, no_show

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ScheduledReport(SQLModel, table=True):
    """Recurring analytics report emailed to recipients."""
    __tablename__ = "scheduled_reports"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    created_by: Optional[uuid.UUID] = None

    name: str
    frequency: str = Field(default="weekly")  # daily, weekly, monthly
    recipients: List[str] = Field(default_factory=list, sa_column=JSONColumn())
    active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
