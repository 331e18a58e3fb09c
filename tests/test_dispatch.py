"""
Outbox writes and fire-and-forget delivery of row changes.
"""
import json
import uuid

import httpx
from sqlmodel import select

from chatpad.config import settings
from chatpad.models.dispatch import DispatchEvent, DispatchStatus
from chatpad.models.notification import Notification
from chatpad.services.dispatch_service import INTERNAL_SECRET_HEADER, EventDispatcher, build_payload
from chatpad.services.resource_service import ResourceService
from tests.factories import context_for, auth_headers


async def _events(session_factory):
    async with session_factory() as session:
        result = await session.exec(select(DispatchEvent).order_by(DispatchEvent.created_at))
        return list(result.all())


def test_payload_shape():
    payload = build_payload("insert", "leads", {"id": "1"})
    assert payload == {"type": "insert", "table": "leads", "schema": "public", "record": {"id": "1"}}

    payload = build_payload("update", "leads", {"id": "1"}, old_record={"id": "1", "name": "a"})
    assert payload["old_record"] == {"id": "1", "name": "a"}


async def test_lead_insert_dispatches_once_and_survives_downstream_500(
    client, session_factory, dispatch_recorder, owner
):
    dispatch_recorder.status_code = 500

    response = await client.post(
        "/api/resources/leads",
        json={"name": "Dana Scully", "email": "dana@fbi.test"},
        headers=auth_headers(owner)
    )

    assert response.status_code == 201
    lead = response.json()

    events = await _events(session_factory)
    assert len(events) == 1
    assert events[0].table_name == "leads"
    assert events[0].account_id == owner.id
    assert events[0].status == DispatchStatus.FAILED
    assert events[0].attempts == 1
    assert "500" in events[0].last_error

    assert len(dispatch_recorder.requests) == 1
    request = dispatch_recorder.requests[0]
    assert str(request.url) == settings.DISPATCH_URL
    assert request.headers[INTERNAL_SECRET_HEADER] == "test-internal-secret"

    body = json.loads(request.content)
    assert body["type"] == "insert"
    assert body["table"] == "leads"
    assert body["schema"] == "public"
    assert body["record"]["id"] == lead["id"]
    assert body["record"]["user_id"] == str(owner.id)
    assert "old_record" not in body


async def test_lead_insert_notifies_the_account(client, db, owner):
    await client.post("/api/resources/leads", json={"name": "Fox"}, headers=auth_headers(owner))

    notifications = (await db.exec(select(Notification).where(Notification.user_id == owner.id))).all()
    assert len(notifications) == 1
    assert notifications[0].type == "lead"


async def test_successful_delivery_marks_event_delivered(client, session_factory, dispatch_recorder, owner):
    await client.post("/api/resources/leads", json={"name": "Walter"}, headers=auth_headers(owner))

    events = await _events(session_factory)
    assert events[0].status == DispatchStatus.DELIVERED
    assert events[0].delivered_at is not None


async def test_tables_outside_dispatch_set_are_not_enqueued(client, session_factory, dispatch_recorder, owner):
    response = await client.post("/api/resources/agents", json={"name": "Quiet"}, headers=auth_headers(owner))

    assert response.status_code == 201
    assert await _events(session_factory) == []
    assert dispatch_recorder.requests == []


async def test_update_and_delete_carry_old_record(db, session_factory, dispatcher, dispatch_recorder, owner):
    ctx = await context_for(db, owner)
    service = ResourceService(db, "leads")
    lead = await service.create(ctx, {"name": "Before"})
    await service.update(ctx, lead.id, {"name": "After"})
    await service.delete(ctx, lead.id)

    assert await dispatcher.deliver_many(service.pending_dispatch) == 3

    bodies = [json.loads(r.content) for r in dispatch_recorder.requests]
    assert [b["type"] for b in bodies] == ["insert", "update", "delete"]

    update = bodies[1]
    assert update["record"]["name"] == "After"
    assert update["old_record"]["name"] == "Before"

    delete = bodies[2]
    assert delete["record"] is None
    assert delete["old_record"]["name"] == "After"

    events = await _events(session_factory)
    assert all(e.account_id == owner.id for e in events)


async def test_failed_events_are_redelivered(db, session_factory, dispatcher, dispatch_recorder, owner):
    dispatch_recorder.status_code = 503
    service = ResourceService(db, "leads")
    await service.create(await context_for(db, owner), {"name": "Retry me"})

    assert await dispatcher.deliver_many(service.pending_dispatch) == 0

    dispatch_recorder.status_code = 200
    assert await dispatcher.deliver_pending() == 1

    events = await _events(session_factory)
    assert events[0].status == DispatchStatus.DELIVERED
    assert events[0].attempts == 2
    assert await dispatcher.deliver_pending() == 0


async def test_events_out_of_attempts_are_not_retried(db, session_factory, dispatcher, dispatch_recorder, owner):
    dispatch_recorder.status_code = 500
    service = ResourceService(db, "leads")
    await service.create(await context_for(db, owner), {"name": "Hopeless"})

    for _ in range(settings.DISPATCH_MAX_ATTEMPTS):
        await dispatcher.deliver_pending()

    assert (await _events(session_factory))[0].attempts == settings.DISPATCH_MAX_ATTEMPTS
    assert await dispatcher.deliver_pending() == 0
    assert len(dispatch_recorder.requests) == settings.DISPATCH_MAX_ATTEMPTS


async def test_transport_errors_do_not_raise(db, session_factory, owner):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = EventDispatcher(
        session_factory=session_factory,
        client=httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    )
    service = ResourceService(db, "leads")
    await service.create(await context_for(db, owner), {"name": "Offline"})

    assert await dispatcher.deliver_many(service.pending_dispatch) == 0

    events = await _events(session_factory)
    assert events[0].status == DispatchStatus.FAILED
    assert "connection refused" in events[0].last_error


async def test_missing_dispatch_url_skips_delivery(monkeypatch, db, session_factory, dispatcher, dispatch_recorder, owner):
    monkeypatch.setattr(settings, "DISPATCH_URL", "")
    service = ResourceService(db, "leads")
    await service.create(await context_for(db, owner), {"name": "Nowhere"})

    assert await dispatcher.deliver_many(service.pending_dispatch) == 0

    events = await _events(session_factory)
    assert events[0].status == DispatchStatus.SKIPPED
    assert dispatch_recorder.requests == []


async def test_unknown_event_is_not_an_error(dispatcher):
    assert await dispatcher.deliver(uuid.uuid4()) is False
