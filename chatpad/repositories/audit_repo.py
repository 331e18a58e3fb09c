"""
Audit log repository.
Append and read only: entries are never updated or deleted.
"""
import uuid
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from chatpad.models.audit import AdminAuditLog
from chatpad.core.pagination import create_paginated_response


class AdminAuditLogRepository:
    """Repository for AdminAuditLog operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: AdminAuditLog) -> AdminAuditLog:
        """Insert an audit entry and commit it."""
        self.session.add(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        return entry

    async def get(self, entry_id: uuid.UUID) -> Optional[AdminAuditLog]:
        return await self.session.get(AdminAuditLog, entry_id)

    async def search(
        self,
        actor_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        target_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 50
    ) -> dict:
        """Newest-first paginated search."""
        query = select(AdminAuditLog)
        if actor_id:
            query = query.where(AdminAuditLog.admin_user_id == actor_id)
        if action:
            query = query.where(AdminAuditLog.action == action)
        if target_id:
            query = query.where(AdminAuditLog.target_id == target_id)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        query = query.order_by(AdminAuditLog.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.session.exec(query)

        return create_paginated_response(list(result.all()), total, page, limit)
