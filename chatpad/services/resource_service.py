"""
Resource service - guarded CRUD over account-scoped tables.

Each call checks the resource policy against the caller's context, keeps
child rows inside their parent's account, and writes an outbox row for
dispatched tables in the same transaction as the change.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Any, Dict

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationError
)
from chatpad.core.policies import ResourcePolicy, POLICIES, CASCADE, get_policy
from chatpad.models.platform import AdminPermission
from chatpad.models.webhook import WebhookLog
from chatpad.repositories.base import BaseRepository
from chatpad.services.access_service import AccessService, AccessContext
from chatpad.services.dispatch_service import DispatchService, ChangeTypes, serialize_record
from chatpad.services.notification_service import NotificationService, NotificationTypes

# Columns a client may never set directly
PROTECTED_FIELDS = ("id", "user_id", "created_at", "updated_at")


def get_resource_policy(resource_type: str) -> ResourcePolicy:
    if resource_type not in POLICIES:
        raise NotFoundError("Resource type", resource_type)
    return get_policy(resource_type)


class ResourceService:
    """Service for generic account-scoped resource operations."""

    def __init__(self, session: AsyncSession, resource_type: str):
        self.session = session
        self.resource_type = resource_type
        self.policy = get_resource_policy(resource_type)
        self.repo = BaseRepository(self.policy.model, session)
        self.access = AccessService(session)
        self.dispatch = DispatchService(session)
        self.notifications = NotificationService(session)

    @property
    def pending_dispatch(self) -> List[uuid.UUID]:
        """Outbox event ids written by this service, to deliver after commit."""
        return list(self.dispatch.enqueued)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def serialize(self, row: SQLModel) -> Dict[str, Any]:
        """Row as a JSON-safe dict without hidden columns."""
        data = row.model_dump(mode="json")
        for field in self.policy.hidden_fields:
            data.pop(field, None)
        return data

    def _clean_input(self, data: Dict[str, Any]) -> Dict[str, Any]:
        fields = self.policy.model.model_fields
        unknown = [key for key in data if key not in fields]
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        return {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}

    def _validate(self, data: Dict[str, Any]) -> SQLModel:
        try:
            return self.policy.model.model_validate(data)
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(errors)

    def _coerce_filters(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        """Column filters converted to each column's type."""
        fields = self.policy.model.model_fields
        coerced = {}
        for key, value in filters.items():
            if key not in fields or key in self.policy.hidden_fields:
                raise ValidationError(f"Cannot filter on '{key}'")
            try:
                coerced[key] = TypeAdapter(fields[key].annotation).validate_python(value)
            except PydanticValidationError:
                raise ValidationError(f"Invalid value for '{key}': {value}")
        return coerced

    async def _check_parent(self, row: SQLModel, account_id: uuid.UUID) -> None:
        """A child row must point at a parent in the same account."""
        if not self.policy.parent:
            return

        parent_type, fk_field = self.policy.parent
        parent_id = getattr(row, fk_field)
        if parent_id is None:
            return

        parent_model = get_policy(parent_type).model
        parent = await self.session.get(parent_model, parent_id)
        if not parent:
            raise NotFoundError(parent_type, str(parent_id))
        if parent.user_id != account_id:
            raise ForbiddenError(f"{parent_type} {parent_id} belongs to a different account")

    async def _load(self, ctx: AccessContext, resource_id: uuid.UUID, action: str) -> SQLModel:
        row = await self.repo.get(resource_id)
        if not row:
            raise NotFoundError(self.resource_type, str(resource_id))
        await self.access.authorize(ctx, self.resource_type, action, row.user_id)
        return row

    async def _after_create(self, row: SQLModel) -> None:
        if self.resource_type == "leads":
            label = row.name or row.email or "A visitor"
            await self.notifications.notify_account(
                row.user_id,
                NotificationTypes.LEAD,
                "New lead",
                f"{label} was captured",
                {"lead_id": str(row.id)}
            )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create(
        self,
        ctx: AccessContext,
        data: Dict[str, Any],
        account_id: Optional[uuid.UUID] = None
    ) -> SQLModel:
        """
        Create a row in the caller's account, or in account_id when the
        caller holds manage_accounts.
        """
        if not self.policy.generic_create:
            raise ForbiddenError(f"{self.resource_type} must be created through its dedicated endpoint")

        own_account = ctx.account_id
        if account_id is None:
            account_id = ctx.require_account()
        elif account_id != own_account:
            if not await self.access.has_admin_permission(ctx.principal_id, AdminPermission.MANAGE_ACCOUNTS):
                raise ForbiddenError("Cannot create resources in another account")

        await self.access.authorize(ctx, self.resource_type, "create", account_id)

        values = self._clean_input(data)
        values["user_id"] = account_id
        if "created_by" in self.policy.model.model_fields and values.get("created_by") is None:
            values["created_by"] = ctx.acting_id

        row = self._validate(values)
        await self._check_parent(row, account_id)
        self.session.add(row)
        await self.session.flush()

        await self.dispatch.enqueue(ChangeTypes.INSERT, self.resource_type, row)
        await self._after_create(row)

        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def get(self, ctx: AccessContext, resource_id: uuid.UUID) -> SQLModel:
        return await self._load(ctx, resource_id, "read")

    async def list(
        self,
        ctx: AccessContext,
        filters: Optional[dict] = None,
        account_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """
        Rows the caller can see. Without account_id this is every account the
        acting user belongs to; view_accounts lifts the restriction.
        """
        can_view_all = await self.access.has_admin_permission(ctx.principal_id, AdminPermission.VIEW_ACCOUNTS)

        if account_id is not None:
            if not can_view_all and not await self.access.has_account_access(account_id, ctx.acting_id):
                raise ForbiddenError(f"No access to {self.resource_type} of this account")
            account_ids = [account_id]
        elif can_view_all and not ctx.is_impersonating:
            account_ids = None
        else:
            account_ids = await self.access.accessible_account_ids(ctx.acting_id)

        return await self.repo.list_paginated(
            account_ids=account_ids,
            filters=self._coerce_filters(filters) if filters else None,
            page=page,
            limit=limit
        )

    async def update(
        self,
        ctx: AccessContext,
        resource_id: uuid.UUID,
        data: Dict[str, Any]
    ) -> SQLModel:
        row = await self._load(ctx, resource_id, "update")
        old_record = serialize_record(row)

        readonly = sorted(set(data) & self.policy.readonly_fields)
        if readonly:
            raise ValidationError(f"Read-only fields: {', '.join(readonly)}")

        changes = self._clean_input(data)
        merged = self._validate({**row.model_dump(), **changes})
        await self._check_parent(merged, row.user_id)
        for field in changes:
            setattr(row, field, getattr(merged, field))
        if hasattr(row, "updated_at"):
            row.updated_at = datetime.utcnow()
        self.session.add(row)
        await self.session.flush()

        await self.dispatch.enqueue(ChangeTypes.UPDATE, self.resource_type, row, old_record=old_record)

        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def delete(self, ctx: AccessContext, resource_id: uuid.UUID) -> None:
        """Delete a row. Child rows are deleted or detached per the policy."""
        row = await self._load(ctx, resource_id, "delete")
        await self._remove(row)
        await self.session.commit()

    async def _remove(self, row: SQLModel) -> None:
        await self._release_children(row)
        old_record = serialize_record(row)

        await self.session.delete(row)
        await self.session.flush()

        await self.dispatch.enqueue(
            ChangeTypes.DELETE, self.resource_type, None,
            old_record=old_record, account_id=row.user_id
        )

    async def _release_children(self, row: SQLModel) -> None:
        if self.resource_type == "webhooks":
            await BaseRepository(WebhookLog, self.session).delete_where("webhook_id", row.id)

        for child_type, fk_field, rule in self.policy.children:
            child = ResourceService(self.session, child_type)
            child.dispatch = self.dispatch
            column = getattr(child.policy.model, fk_field)
            result = await self.session.exec(select(child.policy.model).where(column == row.id))

            for child_row in result.all():
                if rule == CASCADE:
                    await child._remove(child_row)
                    continue
                old_record = serialize_record(child_row)
                setattr(child_row, fk_field, None)
                if hasattr(child_row, "updated_at"):
                    child_row.updated_at = datetime.utcnow()
                self.session.add(child_row)
                await self.session.flush()
                await self.dispatch.enqueue(ChangeTypes.UPDATE, child_type, child_row, old_record=old_record)

    async def authorize_action(
        self,
        ctx: AccessContext,
        resource_id: uuid.UUID,
        action: str
    ) -> SQLModel:
        """Load a row and check a custom action (revoke, rotate_secret...) on it."""
        return await self._load(ctx, resource_id, action)
