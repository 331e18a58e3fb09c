"""
Platform roles, capability checks and impersonation sessions.
"""
import uuid

import pytest
from sqlmodel import select

from chatpad.config import settings
from chatpad.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ValidationError
)
from chatpad.models.audit import AdminAuditLog, AuditActions
from chatpad.models.platform import AdminPermission, ImpersonationSession
from chatpad.services.access_service import AccessService
from chatpad.services.impersonation_service import ImpersonationService
from chatpad.services.platform_role_service import PlatformRoleService
from tests.factories import create_user, add_impersonation, auth_headers

REASON = "Customer ticket #4411 about missing leads"


# =============================================================================
# Platform roles
# =============================================================================

async def test_super_admin_grants_capabilities(db, owner, super_admin):
    user_role = await PlatformRoleService(db).set_role(
        super_admin.id, owner.id, "admin", [AdminPermission.VIEW_ACCOUNTS]
    )

    assert user_role.role == "admin"
    assert await AccessService(db).has_admin_permission(owner.id, AdminPermission.VIEW_ACCOUNTS)

    entries = (await db.exec(
        select(AdminAuditLog).where(AdminAuditLog.action == AuditActions.PLATFORM_ROLE_CHANGE)
    )).all()
    assert len(entries) == 1
    assert entries[0].target_email == "aaron@test.com"
    assert entries[0].details["new_role"] == "admin"


async def test_team_manager_cannot_grant_super_admin(db, owner):
    manager = await create_user(
        db, owner=False, platform_role="admin",
        admin_permissions=[AdminPermission.MANAGE_TEAM]
    )
    service = PlatformRoleService(db)

    await service.set_role(manager.id, owner.id, "pilot_support")
    with pytest.raises(ForbiddenError):
        await service.set_role(manager.id, owner.id, "super_admin")


async def test_team_manager_cannot_demote_super_admin(db, super_admin):
    manager = await create_user(
        db, owner=False, platform_role="admin",
        admin_permissions=[AdminPermission.MANAGE_TEAM]
    )

    with pytest.raises(ForbiddenError):
        await PlatformRoleService(db).set_role(manager.id, super_admin.id, "member")


async def test_set_role_requires_manage_team(db, owner, outsider):
    with pytest.raises(ForbiddenError):
        await PlatformRoleService(db).set_role(owner.id, outsider.id, "admin")


async def test_set_role_rejects_unknown_values(db, owner, super_admin):
    service = PlatformRoleService(db)

    with pytest.raises(ValidationError):
        await service.set_role(super_admin.id, owner.id, "overlord")
    with pytest.raises(ValidationError):
        await service.set_role(super_admin.id, owner.id, "admin", ["launch_missiles"])


async def test_permission_check_endpoint(client, super_admin, owner):
    response = await client.get(
        f"/api/admin/permissions/{AdminPermission.VIEW_AUDIT}",
        headers=auth_headers(super_admin)
    )
    assert response.status_code == 200
    assert response.json()["granted"] is True

    response = await client.get(
        f"/api/admin/permissions/{AdminPermission.VIEW_AUDIT}",
        headers=auth_headers(owner)
    )
    assert response.json()["granted"] is False


async def test_super_admin_reads_any_account_over_api(client, db, owner, super_admin):
    response = await client.post(
        "/api/resources/agents",
        json={"name": "Front desk"},
        headers=auth_headers(owner)
    )
    agent_id = response.json()["id"]

    response = await client.get(f"/api/resources/agents/{agent_id}", headers=auth_headers(super_admin))
    assert response.status_code == 200
    assert response.json()["user_id"] == str(owner.id)


# =============================================================================
# Impersonation
# =============================================================================

async def test_start_impersonation(db, owner, super_admin):
    result = await ImpersonationService(db).start(super_admin.id, owner.id, REASON, ip_address="10.0.0.1")

    assert result["target_user_id"] == owner.id
    assert result["target_email"] == "aaron@test.com"
    assert (result["expires_at"] - result["started_at"]).total_seconds() == 30 * 60

    ctx = await AccessService(db).build_context(super_admin.id)
    assert ctx.impersonation_session_id == result["session_id"]
    assert ctx.account_id == owner.id

    entries = (await db.exec(
        select(AdminAuditLog).where(AdminAuditLog.action == AuditActions.IMPERSONATION_START)
    )).all()
    assert len(entries) == 1
    assert entries[0].ip_address == "10.0.0.1"
    assert entries[0].details["reason"] == REASON


async def test_start_requires_capability(db, owner, outsider):
    with pytest.raises(ForbiddenError):
        await ImpersonationService(db).start(outsider.id, owner.id, REASON)


async def test_start_requires_a_reason(db, owner, super_admin):
    with pytest.raises(ValidationError):
        await ImpersonationService(db).start(super_admin.id, owner.id, "   short   ")


async def test_cannot_impersonate_self(db, super_admin):
    with pytest.raises(ValidationError):
        await ImpersonationService(db).start(super_admin.id, super_admin.id, REASON)


async def test_cannot_impersonate_super_admin(db, super_admin):
    other = await create_user(db, owner=False, platform_role="super_admin")

    with pytest.raises(ForbiddenError):
        await ImpersonationService(db).start(super_admin.id, other.id, REASON)


async def test_unknown_target_is_not_found(db, super_admin):
    with pytest.raises(NotFoundError):
        await ImpersonationService(db).start(super_admin.id, uuid.uuid4(), REASON)


async def test_starting_closes_previous_session(db, owner, outsider, super_admin):
    service = ImpersonationService(db)
    first = await service.start(super_admin.id, owner.id, REASON)
    second = await service.start(super_admin.id, outsider.id, REASON)

    previous = await db.get(ImpersonationSession, first["session_id"])
    await db.refresh(previous)
    assert previous.is_active is False
    assert previous.ended_at is not None

    active = await service.get_active(super_admin.id)
    assert active["session_id"] == second["session_id"]
    assert await AccessService(db).resolve_account_id(super_admin.id) == outsider.id


async def test_rate_limit(db, owner, super_admin):
    for _ in range(settings.MAX_IMPERSONATIONS_PER_HOUR):
        await add_impersonation(db, super_admin, owner, started_minutes_ago=10, is_active=False)

    with pytest.raises(RateLimitError):
        await ImpersonationService(db).start(super_admin.id, owner.id, REASON)


async def test_end_is_idempotent(db, owner, super_admin):
    service = ImpersonationService(db)
    started = await service.start(super_admin.id, owner.id, REASON)

    assert await service.end(super_admin.id, started["session_id"]) == {"success": True, "already_ended": False}
    assert await service.end(super_admin.id, started["session_id"]) == {"success": True, "already_ended": True}
    assert await service.get_active(super_admin.id) is None
    assert await AccessService(db).resolve_account_id(super_admin.id) is None


async def test_end_someone_elses_session_is_not_found(db, owner, super_admin):
    other_admin = await create_user(db, owner=False, platform_role="super_admin")
    started = await ImpersonationService(db).start(super_admin.id, owner.id, REASON)

    with pytest.raises(NotFoundError):
        await ImpersonationService(db).end(other_admin.id, started["session_id"])


async def test_end_all(db, owner, outsider, super_admin):
    await add_impersonation(db, super_admin, owner)
    await add_impersonation(db, super_admin, outsider)

    assert await ImpersonationService(db).end_all(super_admin.id) == 2
    assert await AccessService(db).get_valid_impersonation(super_admin.id) is None


async def test_impersonation_over_api(client, owner, super_admin):
    headers = auth_headers(super_admin)

    response = await client.post(
        "/api/admin/impersonation",
        json={"target_user_id": str(owner.id), "reason": REASON},
        headers=headers
    )
    assert response.status_code == 201
    session_id = response.json()["session_id"]

    response = await client.get("/api/account/", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["account_id"] == str(owner.id)
    assert body["acting_id"] == str(owner.id)
    assert body["principal_id"] == str(super_admin.id)
    assert body["platform_role"] == "super_admin"

    response = await client.post(
        "/api/admin/impersonation/end",
        json={"session_id": session_id},
        headers=headers
    )
    assert response.json() == {"success": True, "already_ended": False}

    response = await client.get("/api/account/", headers=headers)
    assert response.json()["account_id"] is None
