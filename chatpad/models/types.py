"""
Shared column types.
JSONB on Postgres, generic JSON elsewhere (SQLite in tests).
"""
from sqlalchemy import Column, JSON
from sqlalchemy.dialects.postgresql import JSONB


def JSONColumn(nullable: bool = True) -> Column:
    """Fresh JSON column; SQLAlchemy columns cannot be shared between tables."""
    return Column(JSON().with_variant(JSONB(), "postgresql"), nullable=nullable)
