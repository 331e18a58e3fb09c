"""
Agent models - AI chat agents and what hangs off them.
Every row is scoped to an account through user_id.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from chatpad.models.types import JSONColumn


class Agent(SQLModel, table=True):
    """AI chat agent configured by an account."""
    __tablename__ = "agents"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str
    description: Optional[str] = None
    model: str = Field(default="default")
    system_prompt: Optional[str] = None
    status: str = Field(default="draft")  # draft, active, paused
    deployment_config: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class KnowledgeSource(SQLModel, table=True):
    """Document, URL or sitemap an agent answers from."""
    __tablename__ = "knowledge_sources"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    agent_id: uuid.UUID = Field(foreign_key="agents.id", ondelete="CASCADE", index=True)

    source: str
    type: str = Field(default="url")  # url, sitemap, pdf, text
    status: str = Field(default="processing")  # processing, ready, error
    meta_data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ApiKey(SQLModel, table=True):
    """
    API key for widget/server access.
    Only the hash is stored; the plaintext is returned once on creation.
    """
    __tablename__ = "api_keys"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    agent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="agents.id", ondelete="CASCADE", index=True)

    name: str
    key_prefix: str
    key_hash: str = Field(unique=True, index=True)

    revoked_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CustomDomain(SQLModel, table=True):
    """Custom domain serving an account's help center / widget."""
    __tablename__ = "custom_domains"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    domain: str = Field(unique=True, index=True)
    verified: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
