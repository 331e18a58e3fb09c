"""
Base repository with generic CRUD operations.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional, List, Any, Iterable
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from chatpad.core.pagination import create_paginated_response

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.

    Write methods commit by default; pass commit=False to keep the change
    in the caller's transaction (e.g. alongside an outbox row).
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, obj_in: dict, commit: bool = True) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_obj)
        else:
            await self.session.flush()
        return db_obj

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a record by a specific field."""
        query = select(self.model).where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        return result.first()

    def _scoped_query(
        self,
        account_ids: Optional[Iterable[uuid.UUID]] = None,
        filters: Optional[dict] = None,
    ):
        query = select(self.model)

        # Restrict to the given accounts if model is account-scoped
        if account_ids is not None and hasattr(self.model, 'user_id'):
            query = query.where(self.model.user_id.in_(list(account_ids)))

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)

        return query

    async def list(
        self,
        account_ids: Optional[Iterable[uuid.UUID]] = None,
        filters: Optional[dict] = None,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> List[ModelType]:
        """List all records with optional filters."""
        query = self._scoped_query(account_ids, filters)

        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        result = await self.session.exec(query)
        return list(result.all())

    async def list_paginated(
        self,
        account_ids: Optional[Iterable[uuid.UUID]] = None,
        filters: Optional[dict] = None,
        page: int = 1,
        limit: int = 20,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> dict:
        """List records with pagination."""
        if account_ids is not None:
            account_ids = list(account_ids)
        query = self._scoped_query(account_ids, filters)
        total = await self.count(account_ids, filters)

        # Apply ordering
        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        # Apply pagination
        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.session.exec(query)
        items = list(result.all())

        return create_paginated_response(items, total, page, limit)

    async def update(self, id: uuid.UUID, obj_in: dict, commit: bool = True) -> Optional[ModelType]:
        """Update a record."""
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if hasattr(db_obj, field) and value is not None:
                setattr(db_obj, field, value)

        # Update timestamp if exists
        if hasattr(db_obj, 'updated_at'):
            db_obj.updated_at = datetime.utcnow()

        self.session.add(db_obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_obj)
        else:
            await self.session.flush()
        return db_obj

    async def delete(self, id: uuid.UUID, commit: bool = True) -> bool:
        """Delete a record."""
        db_obj = await self.get(id)
        if not db_obj:
            return False

        await self.session.delete(db_obj)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()
        return True

    async def delete_where(self, field: str, value: Any) -> int:
        """Delete every record matching field == value. Does not commit."""
        query = select(self.model).where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        rows = list(result.all())
        for row in rows:
            await self.session.delete(row)
        await self.session.flush()
        return len(rows)

    async def count(
        self,
        account_ids: Optional[Iterable[uuid.UUID]] = None,
        filters: Optional[dict] = None
    ) -> int:
        """Count records."""
        query = self._scoped_query(account_ids, filters)
        count_query = select(func.count()).select_from(query.subquery())
        result = await self.session.exec(count_query)
        return result.one()

    async def exists(self, id: uuid.UUID) -> bool:
        """Check if a record exists."""
        obj = await self.get(id)
        return obj is not None
