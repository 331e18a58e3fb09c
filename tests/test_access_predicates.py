"""
Account and platform predicates, checked against a plain-python model of the
membership graph.
"""
import random

from chatpad.core.policies import POLICIES, ACCOUNT_ADMIN
from chatpad.models.platform import AdminPermission
from chatpad.services.access_service import AccessService
from tests.factories import create_user, add_membership, context_for


async def test_predicates_match_random_membership_graphs(db):
    rng = random.Random(20240611)
    users = [await create_user(db, owner=rng.random() < 0.5) for _ in range(8)]

    edges = {}
    for _ in range(14):
        owner, member = rng.sample(users, 2)
        if (owner.id, member.id) in edges:
            continue
        role = rng.choice(["admin", "member"])
        edges[(owner.id, member.id)] = role
        await add_membership(db, owner, member, role=role)

    access = AccessService(db)
    for account in users:
        for principal in users:
            key = (account.id, principal.id)
            expected_access = principal.id == account.id or key in edges
            expected_admin = principal.id == account.id or edges.get(key) == "admin"

            assert await access.has_account_access(account.id, principal.id) == expected_access
            assert await access.is_account_admin(account.id, principal.id) == expected_admin


async def test_admin_and_member_differ_only_on_admin_actions(db, owner):
    admin = await create_user(db, owner=False)
    member = await create_user(db, owner=False)
    await add_membership(db, owner, admin, role="admin")
    await add_membership(db, owner, member, role="member")
    access = AccessService(db)

    assert await access.has_account_access(owner.id, admin.id)
    assert await access.has_account_access(owner.id, member.id)
    assert await access.is_account_admin(owner.id, admin.id)
    assert not await access.is_account_admin(owner.id, member.id)

    admin_ctx = await context_for(db, admin)
    member_ctx = await context_for(db, member)
    for resource_type, policy in POLICIES.items():
        for action in ("read", "list", "create", "update", "delete", "revoke", "rotate_secret"):
            assert await access.can(admin_ctx, resource_type, action, owner.id)
            expected = policy.rule_for(action) != ACCOUNT_ADMIN
            assert await access.can(member_ctx, resource_type, action, owner.id) == expected


async def test_owner_is_admin_of_own_account(db, owner):
    access = AccessService(db)

    assert await access.has_account_access(owner.id, owner.id)
    assert await access.is_account_admin(owner.id, owner.id)


async def test_outsider_has_no_access(db, owner, outsider):
    access = AccessService(db)
    ctx = await context_for(db, outsider)

    assert not await access.has_account_access(owner.id, outsider.id)
    assert not await access.can(ctx, "leads", "read", owner.id)


async def test_super_admin_bypasses_account_access(db, owner, super_admin):
    access = AccessService(db)
    ctx = await context_for(db, super_admin)

    assert not await access.has_account_access(owner.id, super_admin.id)
    for capability in AdminPermission.ALL:
        assert await access.has_admin_permission(super_admin.id, capability)
    for resource_type in POLICIES:
        assert await access.can(ctx, resource_type, "read", owner.id)
        assert await access.can(ctx, resource_type, "delete", owner.id)


async def test_explicit_capability_grants_only_that_capability(db, owner):
    viewer = await create_user(
        db, owner=False, platform_role="admin",
        admin_permissions=[AdminPermission.VIEW_ACCOUNTS]
    )
    access = AccessService(db)
    ctx = await context_for(db, viewer)

    assert await access.has_admin_permission(viewer.id, AdminPermission.VIEW_ACCOUNTS)
    assert not await access.has_admin_permission(viewer.id, AdminPermission.MANAGE_ACCOUNTS)
    assert await access.can(ctx, "leads", "read", owner.id)
    assert not await access.can(ctx, "leads", "update", owner.id)


async def test_support_role_is_operator_without_capabilities(db):
    support = await create_user(db, owner=False, platform_role="pilot_support")
    access = AccessService(db)

    assert await access.is_platform_operator(support.id)
    assert not await access.is_super_admin(support.id)
    assert not await access.has_admin_permission(support.id, AdminPermission.VIEW_ACCOUNTS)


async def test_user_without_role_has_no_capabilities(db, owner):
    access = AccessService(db)

    assert await access.get_platform_role(owner.id) is None
    assert not await access.has_admin_permission(owner.id, AdminPermission.VIEW_AUDIT)
