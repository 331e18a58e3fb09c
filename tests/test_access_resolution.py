"""
Account resolution: impersonation, subscription, membership, nothing.
"""
from datetime import datetime, timedelta

import pytest

from chatpad.core.exceptions import NoAccountContextError
from chatpad.services.access_service import AccessService
from tests.factories import create_user, add_membership, add_impersonation


async def test_owner_resolves_to_self(db, owner):
    assert await AccessService(db).resolve_account_id(owner.id) == owner.id


async def test_member_resolves_to_owner(db, owner):
    jacob = await create_user(db, email="jacob@test.com", owner=False)
    await add_membership(db, owner, jacob)

    assert await AccessService(db).resolve_account_id(jacob.id) == owner.id


async def test_user_without_account_resolves_to_none(db):
    drifter = await create_user(db, owner=False)
    access = AccessService(db)

    assert await access.resolve_account_id(drifter.id) is None
    with pytest.raises(NoAccountContextError):
        await access.require_account_id(drifter.id)


async def test_subscription_beats_membership(db, owner):
    other_owner = await create_user(db)
    await add_membership(db, owner, other_owner)

    assert await AccessService(db).resolve_account_id(other_owner.id) == other_owner.id


async def test_earliest_membership_wins(db, owner, outsider):
    member = await create_user(db, owner=False)
    now = datetime.utcnow()
    await add_membership(db, outsider, member, created_at=now - timedelta(days=1))
    await add_membership(db, owner, member, created_at=now - timedelta(days=5))

    assert await AccessService(db).resolve_account_id(member.id) == owner.id


async def test_valid_impersonation_resolves_to_target_account(db, owner, super_admin):
    await add_impersonation(db, super_admin, owner, started_minutes_ago=5)

    ctx = await AccessService(db).build_context(super_admin.id)
    assert ctx.account_id == owner.id
    assert ctx.acting_id == owner.id
    assert ctx.principal_id == super_admin.id
    assert ctx.is_impersonating


async def test_impersonating_a_member_resolves_to_their_owner(db, owner, super_admin):
    jacob = await create_user(db, email="jacob@test.com", owner=False)
    await add_membership(db, owner, jacob)
    await add_impersonation(db, super_admin, jacob)

    assert await AccessService(db).resolve_account_id(super_admin.id) == owner.id


async def test_impersonating_user_without_account_resolves_to_target(db, super_admin):
    drifter = await create_user(db, owner=False)
    await add_impersonation(db, super_admin, drifter)

    assert await AccessService(db).resolve_account_id(super_admin.id) == drifter.id


async def test_session_started_31_minutes_ago_is_ignored(db, owner):
    admin = await create_user(db, email="ops@pilot.test")
    await add_impersonation(db, admin, owner, started_minutes_ago=31)
    access = AccessService(db)

    assert await access.get_valid_impersonation(admin.id) is None
    assert await access.resolve_account_id(admin.id) == admin.id

    ctx = await access.build_context(admin.id)
    assert not ctx.is_impersonating
    assert ctx.acting_id == admin.id


async def test_session_validity_is_checked_against_now(db, owner, super_admin):
    impersonation = await add_impersonation(db, super_admin, owner)
    access = AccessService(db)

    later = impersonation.started_at + timedelta(minutes=29)
    assert await access.resolve_account_id(super_admin.id, now=later) == owner.id

    much_later = impersonation.started_at + timedelta(minutes=31)
    assert await access.resolve_account_id(super_admin.id, now=much_later) is None


async def test_inactive_session_is_ignored(db, owner, super_admin):
    await add_impersonation(db, super_admin, owner, is_active=False)

    assert await AccessService(db).resolve_account_id(super_admin.id) is None


async def test_resolution_is_idempotent(db, owner, outsider):
    member = await create_user(db, owner=False)
    await add_membership(db, owner, member)
    await add_impersonation(db, outsider, member)
    access = AccessService(db)

    for principal in (owner, member, outsider):
        first = await access.resolve_account_id(principal.id)
        second = await access.resolve_account_id(principal.id)
        assert first == second


async def test_accessible_account_ids(db, owner, outsider):
    member = await create_user(db, owner=False)
    await add_membership(db, owner, member)
    await add_membership(db, outsider, member)

    ids = await AccessService(db).accessible_account_ids(member.id)
    assert ids[0] == member.id
    assert set(ids) == {member.id, owner.id, outsider.id}
