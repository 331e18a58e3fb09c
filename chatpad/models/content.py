"""
Platform content: help center and transactional email templates.
Public reads see only published/active rows; writes need manage_content.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class PlatformHCCategory(SQLModel, table=True):
    __tablename__ = "platform_hc_categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    description: Optional[str] = None
    order_index: int = Field(default=0)
    is_published: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PlatformHCArticle(SQLModel, table=True):
    __tablename__ = "platform_hc_articles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    category_id: Optional[uuid.UUID] = Field(default=None, foreign_key="platform_hc_categories.id", ondelete="SET NULL", index=True)

    title: str
    slug: str = Field(unique=True, index=True)
    content: str = Field(default="")
    description: Optional[str] = None
    order_index: int = Field(default=0)
    is_published: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class EmailTemplate(SQLModel, table=True):
    __tablename__ = "email_templates"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    template_type: str = Field(unique=True, index=True)  # team_invitation, new_lead, booking_confirmation...
    name: str
    subject: str
    html_content: str
    active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
