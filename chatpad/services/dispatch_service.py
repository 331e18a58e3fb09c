"""
Change dispatch - transactional outbox plus fire-and-forget delivery.

DispatchService writes an outbox row inside the caller's transaction.
EventDispatcher pushes committed rows to the internal dispatcher endpoint.
Delivery failures are recorded on the row and logged; they never propagate.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable

import httpx
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.config import settings
from chatpad.models.dispatch import DispatchEvent, DispatchStatus
from chatpad.repositories.dispatch_repo import DispatchEventRepository

logger = logging.getLogger(__name__)

# Tables whose row changes are dispatched
DISPATCH_TABLES = ("leads", "conversations", "messages", "calendar_events", "properties")

INTERNAL_SECRET_HEADER = "X-Internal-Secret"


class ChangeTypes:
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def serialize_record(row: Optional[SQLModel]) -> Optional[Dict[str, Any]]:
    """JSON-safe snapshot of a row (UUIDs and datetimes become strings)."""
    if row is None:
        return None
    return row.model_dump(mode="json")


def build_payload(
    change_type: str,
    table: str,
    record: Optional[Dict[str, Any]],
    old_record: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    payload = {
        "type": change_type,
        "table": table,
        "schema": "public",
        "record": record,
    }
    if old_record is not None:
        payload["old_record"] = old_record
    return payload


class DispatchService:
    """Enqueue row changes into the outbox. Never commits."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_repo = DispatchEventRepository(session)
        self.enqueued: List[uuid.UUID] = []

    async def enqueue(
        self,
        change_type: str,
        table: str,
        record: Optional[SQLModel],
        old_record: Optional[Dict[str, Any]] = None,
        account_id: Optional[uuid.UUID] = None
    ) -> Optional[DispatchEvent]:
        """Add an outbox row for a change. Tables outside DISPATCH_TABLES are ignored."""
        if table not in DISPATCH_TABLES:
            return None

        payload = build_payload(change_type, table, serialize_record(record), old_record)
        if account_id is None:
            account_id = getattr(record, "user_id", None)
            if account_id is None and old_record:
                account_id = uuid.UUID(old_record["user_id"])

        event = await self.event_repo.create({
            "account_id": account_id,
            "event_type": change_type,
            "table_name": table,
            "payload": payload,
        }, commit=False)

        self.enqueued.append(event.id)
        return event


class EventDispatcher:
    """
    Delivers committed outbox events over HTTP.

    Runs outside the request's session, so it opens its own from
    session_factory. Pass client to route requests through a custom
    httpx transport.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        if session_factory is None:
            from chatpad.database import async_session_maker
            session_factory = async_session_maker
        self.session_factory = session_factory
        self.client = client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            INTERNAL_SECRET_HEADER: settings.INTERNAL_WEBHOOK_SECRET,
        }

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(url, json=payload, headers=self.headers)

        async with httpx.AsyncClient(timeout=settings.DISPATCH_TIMEOUT_SECONDS) as client:
            return await client.post(url, json=payload, headers=self.headers)

    async def _send(self, session: AsyncSession, event: DispatchEvent) -> bool:
        url = settings.dispatch_url
        if not url:
            event.status = DispatchStatus.SKIPPED
            session.add(event)
            await session.commit()
            return False

        event.attempts += 1
        try:
            response = await self._post(url, event.payload)
            if response.is_success:
                event.status = DispatchStatus.DELIVERED
                event.delivered_at = datetime.utcnow()
                event.last_error = None
            else:
                event.status = DispatchStatus.FAILED
                event.last_error = f"HTTP {response.status_code}: {response.text[:500]}"
        except httpx.HTTPError as e:
            event.status = DispatchStatus.FAILED
            event.last_error = str(e) or e.__class__.__name__

        session.add(event)
        await session.commit()

        if event.status == DispatchStatus.FAILED:
            logger.warning(
                "Dispatch of %s %s (event %s) failed: %s",
                event.table_name, event.event_type, event.id, event.last_error
            )
            return False
        return True

    async def deliver(self, event_id: uuid.UUID) -> bool:
        """Deliver one event. Returns False on any failure; never raises."""
        try:
            async with self.session_factory() as session:
                event = await DispatchEventRepository(session).get(event_id)
                if not event:
                    logger.warning("Dispatch event %s not found", event_id)
                    return False
                if event.status == DispatchStatus.DELIVERED:
                    return True
                return await self._send(session, event)
        except Exception as e:
            logger.warning("Dispatch of event %s aborted: %s", event_id, e)
            return False

    async def deliver_many(self, event_ids: List[uuid.UUID]) -> int:
        delivered = 0
        for event_id in event_ids:
            if await self.deliver(event_id):
                delivered += 1
        return delivered

    async def deliver_pending(self, limit: int = 100) -> int:
        """
        Retry pending and failed events that have attempts left.
        At-least-once: a receiver may see the same event more than once.
        """
        async with self.session_factory() as session:
            events = await DispatchEventRepository(session).get_redeliverable(
                settings.DISPATCH_MAX_ATTEMPTS, limit
            )
            event_ids = [event.id for event in events]

        return await self.deliver_many(event_ids)
