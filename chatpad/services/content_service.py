"""
Content service - help center and email templates.
Public reads see only published/active rows; writes need manage_content.
"""
import uuid
from typing import Optional, List, Type

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import AlreadyExistsError, NotFoundError
from chatpad.models.content import PlatformHCCategory, PlatformHCArticle, EmailTemplate
from chatpad.models.platform import AdminPermission
from chatpad.repositories.base import BaseRepository
from chatpad.services.access_service import AccessService

# Kind -> (model, visibility column, unique column)
CONTENT_KINDS = {
    "categories": (PlatformHCCategory, "is_published", "slug"),
    "articles": (PlatformHCArticle, "is_published", "slug"),
    "email_templates": (EmailTemplate, "active", "template_type"),
}


class ContentService:
    """Service for platform content operations."""

    def __init__(self, session: AsyncSession, kind: str):
        if kind not in CONTENT_KINDS:
            raise NotFoundError("Content type", kind)
        self.session = session
        self.kind = kind
        self.model, self.visible_field, self.unique_field = CONTENT_KINDS[kind]
        self.repo = BaseRepository(self.model, session)
        self.access = AccessService(session)

    async def _sees_everything(self, principal_id: Optional[uuid.UUID]) -> bool:
        if principal_id is None:
            return False
        return await self.access.has_admin_permission(principal_id, AdminPermission.VIEW_CONTENT)

    async def list(
        self,
        principal_id: Optional[uuid.UUID] = None,
        category_id: Optional[uuid.UUID] = None
    ) -> List[SQLModel]:
        query = select(self.model)
        if not await self._sees_everything(principal_id):
            query = query.where(getattr(self.model, self.visible_field) == True)
        if category_id is not None and hasattr(self.model, "category_id"):
            query = query.where(self.model.category_id == category_id)
        if hasattr(self.model, "order_index"):
            query = query.order_by(self.model.order_index)

        result = await self.session.exec(query)
        return list(result.all())

    async def get(self, principal_id: Optional[uuid.UUID], item_id: uuid.UUID) -> SQLModel:
        """Unpublished rows are reported as missing to the public."""
        item = await self.repo.get(item_id)
        if not item:
            raise NotFoundError(self.kind, str(item_id))
        if not getattr(item, self.visible_field) and not await self._sees_everything(principal_id):
            raise NotFoundError(self.kind, str(item_id))
        return item

    async def get_by_key(self, principal_id: Optional[uuid.UUID], key: str) -> SQLModel:
        """Lookup by slug (help center) or template_type (email templates)."""
        item = await self.repo.get_by_field(self.unique_field, key)
        if not item:
            raise NotFoundError(self.kind, key)
        if not getattr(item, self.visible_field) and not await self._sees_everything(principal_id):
            raise NotFoundError(self.kind, key)
        return item

    async def create(self, principal_id: uuid.UUID, data: dict) -> SQLModel:
        await self.access.require_admin_permission(principal_id, AdminPermission.MANAGE_CONTENT)

        key = data.get(self.unique_field)
        if key and await self.repo.get_by_field(self.unique_field, key):
            raise AlreadyExistsError(self.kind, self.unique_field, key)

        return await self.repo.create(data)

    async def update(self, principal_id: uuid.UUID, item_id: uuid.UUID, data: dict) -> SQLModel:
        await self.access.require_admin_permission(principal_id, AdminPermission.MANAGE_CONTENT)

        key = data.get(self.unique_field)
        if key:
            existing = await self.repo.get_by_field(self.unique_field, key)
            if existing and existing.id != item_id:
                raise AlreadyExistsError(self.kind, self.unique_field, key)

        item = await self.repo.update(item_id, data)
        if not item:
            raise NotFoundError(self.kind, str(item_id))
        return item

    async def delete(self, principal_id: uuid.UUID, item_id: uuid.UUID) -> None:
        await self.access.require_admin_permission(principal_id, AdminPermission.MANAGE_CONTENT)

        if self.model is PlatformHCCategory:
            # Articles outlive their category
            articles = await BaseRepository(PlatformHCArticle, self.session).list(
                filters={"category_id": item_id}
            )
            for article in articles:
                article.category_id = None
                self.session.add(article)

        if not await self.repo.delete(item_id):
            raise NotFoundError(self.kind, str(item_id))
