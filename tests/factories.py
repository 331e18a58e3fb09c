"""
Row factories and helpers shared by the tests.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

import httpx
from sqlmodel.ext.asyncio.session import AsyncSession

from chatpad.core.security import create_access_token, get_password_hash
from chatpad.models.platform import UserRole, Subscription, SubscriptionStatus, ImpersonationSession
from chatpad.models.team import TeamMember
from chatpad.models.user import User, Profile
from chatpad.services.access_service import AccessService, AccessContext


async def create_user(
    db: AsyncSession,
    email: Optional[str] = None,
    owner: bool = True,
    platform_role: Optional[str] = None,
    admin_permissions: Optional[List[str]] = None,
    password: str = "password123"
) -> User:
    """A user with a profile; owners also get an active subscription."""
    email = (email or f"user-{uuid.uuid4().hex[:8]}@test.com").lower()
    user = User(email=email, password_hash=get_password_hash(password))
    db.add(user)
    await db.flush()

    db.add(Profile(user_id=user.id, email=email, display_name=email.split("@")[0]))
    if owner:
        db.add(Subscription(user_id=user.id, plan_id="pro", status=SubscriptionStatus.ACTIVE))
    if platform_role:
        db.add(UserRole(user_id=user.id, role=platform_role, admin_permissions=admin_permissions or []))

    await db.commit()
    await db.refresh(user)
    return user


async def add_membership(
    db: AsyncSession,
    owner: User,
    member: User,
    role: str = "member",
    created_at: Optional[datetime] = None
) -> TeamMember:
    membership = TeamMember(
        owner_id=owner.id,
        member_id=member.id,
        role=role,
        created_at=created_at or datetime.utcnow()
    )
    db.add(membership)
    await db.commit()
    await db.refresh(membership)
    return membership


async def add_impersonation(
    db: AsyncSession,
    admin: User,
    target: User,
    started_minutes_ago: float = 0,
    is_active: bool = True
) -> ImpersonationSession:
    impersonation = ImpersonationSession(
        admin_user_id=admin.id,
        target_user_id=target.id,
        reason="Investigating support ticket",
        is_active=is_active,
        started_at=datetime.utcnow() - timedelta(minutes=started_minutes_ago)
    )
    db.add(impersonation)
    await db.commit()
    await db.refresh(impersonation)
    return impersonation


async def context_for(db: AsyncSession, user: User) -> AccessContext:
    return await AccessService(db).build_context(user.id)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.email, "user_id": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@dataclass
class DispatchRecorder:
    """Answers every outbound request with status_code and keeps the requests."""
    status_code: int = 200
    requests: List[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
