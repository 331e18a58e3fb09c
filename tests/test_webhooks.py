"""
Webhook subscriptions, signed fan-out, the internal dispatch endpoint and API keys.
"""
import json

import pytest
from sqlmodel import select

from chatpad.core.exceptions import ForbiddenError, ValidationError
from chatpad.models.audit import AdminAuditLog, AuditActions
from chatpad.models.automation import Automation
from chatpad.models.webhook import WebhookLog
from chatpad.services.api_key_service import ApiKeyService
from chatpad.services.dispatch_service import build_payload
from chatpad.services.resource_service import ResourceService
from chatpad.services.webhook_service import (
    WebhookService,
    sign_payload,
    verify_internal_secret,
    SIGNATURE_HEADER,
    EVENT_HEADER
)
from tests.factories import create_user, add_membership, context_for, auth_headers, DispatchRecorder

LEAD_ROW = {"id": "5b0e1f7e-8f55-4a43-9e36-0d3c1a9c8f10", "name": "Dana"}


def _lead_insert(owner):
    return build_payload("insert", "leads", {**LEAD_ROW, "user_id": str(owner.id)})


async def test_create_generates_secret(db, owner):
    webhook = await WebhookService(db).create(
        await context_for(db, owner), "CRM", "https://crm.test/hook", ["lead.created"]
    )

    assert webhook.user_id == owner.id
    assert len(webhook.secret) > 20


async def test_create_rejects_non_http_urls(db, owner):
    with pytest.raises(ValidationError):
        await WebhookService(db).create(await context_for(db, owner), "CRM", "ftp://crm.test", ["lead.created"])


async def test_fan_out_signs_and_logs_each_delivery(db, owner):
    recorder = DispatchRecorder()
    ctx = await context_for(db, owner)
    service = WebhookService(db, client=recorder.client())
    subscribed = await service.create(ctx, "CRM", "https://crm.test/hook", ["lead.created"])
    await service.create(ctx, "Bookings only", "https://cal.test/hook", ["booking.created"])
    db.add(Automation(
        user_id=owner.id, name="Welcome", enabled=True,
        trigger_type="event", trigger_config={"event": "lead.created"}
    ))
    await db.commit()

    result = await service.fan_out(_lead_insert(owner))

    assert result == {"event": "lead.created", "webhooks": 1, "delivered": 1, "automations": 1}
    assert len(recorder.requests) == 1

    request = recorder.requests[0]
    assert str(request.url) == "https://crm.test/hook"
    assert request.headers[EVENT_HEADER] == "lead.created"
    assert request.headers[SIGNATURE_HEADER] == sign_payload(subscribed.secret, request.content)
    assert json.loads(request.content)["data"]["record"]["name"] == "Dana"

    logs = (await db.exec(select(WebhookLog))).all()
    assert len(logs) == 1
    assert logs[0].delivered is True
    assert logs[0].status_code == 200


async def test_failed_delivery_is_logged_not_raised(db, owner):
    recorder = DispatchRecorder(status_code=502)
    service = WebhookService(db, client=recorder.client())
    webhook = await service.create(await context_for(db, owner), "CRM", "https://crm.test/hook", ["lead.created"])

    result = await service.fan_out(_lead_insert(owner))

    assert result["webhooks"] == 1
    assert result["delivered"] == 0
    logs = await service.list_logs(await context_for(db, owner), webhook.id)
    assert logs[0].error_message == "HTTP 502"


async def test_fan_out_ignores_other_accounts_and_tables(db, owner, outsider):
    recorder = DispatchRecorder()
    service = WebhookService(db, client=recorder.client())
    await service.create(await context_for(db, outsider), "Theirs", "https://mallory.test", ["lead.created"])

    assert (await service.fan_out(_lead_insert(owner)))["webhooks"] == 0
    assert (await service.fan_out(build_payload("insert", "agents", {"user_id": str(owner.id)})))["event"] is None
    assert recorder.requests == []


async def test_delete_payload_routes_on_old_record(db, owner):
    recorder = DispatchRecorder()
    service = WebhookService(db, client=recorder.client())
    await service.create(await context_for(db, owner), "CRM", "https://crm.test/hook", ["lead.deleted"])

    payload = build_payload("delete", "leads", None, old_record={**LEAD_ROW, "user_id": str(owner.id)})
    result = await service.fan_out(payload)

    assert result["event"] == "lead.deleted"
    assert result["delivered"] == 1


async def test_rotate_secret_is_admin_only(db, owner):
    member = await create_user(db, owner=False)
    await add_membership(db, owner, member)
    service = WebhookService(db)
    webhook = await service.create(await context_for(db, owner), "CRM", "https://crm.test/hook", ["lead.created"])
    old_secret = webhook.secret

    with pytest.raises(ForbiddenError):
        await service.rotate_secret(await context_for(db, member), webhook.id)

    rotated = await service.rotate_secret(await context_for(db, owner), webhook.id)
    assert rotated.secret != old_secret

    entries = (await db.exec(
        select(AdminAuditLog).where(AdminAuditLog.action == AuditActions.WEBHOOK_SECRET_ROTATE)
    )).all()
    assert len(entries) == 1


def test_internal_secret_check():
    assert verify_internal_secret("test-internal-secret")
    assert not verify_internal_secret("guess")
    assert not verify_internal_secret(None)


async def test_internal_endpoint_rejects_bad_secret(client, owner):
    response = await client.post(
        "/api/internal/dispatch",
        json=_lead_insert(owner),
        headers={"X-Internal-Secret": "guess"}
    )
    assert response.status_code == 401

    response = await client.post("/api/internal/dispatch", json=_lead_insert(owner))
    assert response.status_code == 401


async def test_internal_endpoint_fans_out(client, owner):
    response = await client.post(
        "/api/internal/dispatch",
        json=_lead_insert(owner),
        headers={"X-Internal-Secret": "test-internal-secret"}
    )

    assert response.status_code == 200
    assert response.json() == {"event": "lead.created", "webhooks": 0, "delivered": 0, "automations": 0}


async def test_webhook_api_returns_secret_once(client, owner):
    response = await client.post(
        "/api/webhooks/",
        json={"name": "CRM", "url": "https://crm.test/hook", "events": ["lead.created"]},
        headers=auth_headers(owner)
    )
    assert response.status_code == 201
    webhook = response.json()
    assert webhook["secret"]

    response = await client.get(f"/api/resources/webhooks/{webhook['id']}", headers=auth_headers(owner))
    assert response.status_code == 200
    assert "secret" not in response.json()


# =============================================================================
# API keys
# =============================================================================

async def test_api_key_lifecycle(db, owner):
    service = ApiKeyService(db)
    ctx = await context_for(db, owner)

    api_key, plaintext = await service.create(ctx, "Widget")
    assert api_key.key_prefix == plaintext[:8]
    assert api_key.key_hash != plaintext

    verified = await service.verify(plaintext)
    assert verified.id == api_key.id
    assert verified.last_used_at is not None

    await service.revoke(ctx, api_key.id)
    assert await service.verify(plaintext) is None
    assert await service.verify("not-a-key") is None


async def test_api_key_revoke_is_admin_only(db, owner):
    member = await create_user(db, owner=False)
    await add_membership(db, owner, member)
    service = ApiKeyService(db)

    api_key, _ = await service.create(await context_for(db, member), "Member key")
    with pytest.raises(ForbiddenError):
        await service.revoke(await context_for(db, member), api_key.id)


async def test_api_key_agent_must_be_in_account(db, owner, outsider):
    foreign_agent = await ResourceService(db, "agents").create(await context_for(db, outsider), {"name": "Theirs"})

    with pytest.raises(ForbiddenError):
        await ApiKeyService(db).create(await context_for(db, owner), "Widget", foreign_agent.id)


async def test_api_key_list_hides_hash(client, owner):
    response = await client.post("/api/api-keys/", json={"name": "Widget"}, headers=auth_headers(owner))
    assert response.status_code == 201
    assert response.json()["key"].startswith(response.json()["key_prefix"])

    response = await client.get("/api/api-keys/", headers=auth_headers(owner))
    items = response.json()["items"]
    assert len(items) == 1
    assert "key_hash" not in items[0]
