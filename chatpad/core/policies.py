"""Per-resource authorization matrix."""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Type

from sqlmodel import SQLModel

from chatpad.models.agent import Agent, KnowledgeSource, ApiKey, CustomDomain
from chatpad.models.automation import Automation
from chatpad.models.conversation import Conversation, Message
from chatpad.models.lead import Lead
from chatpad.models.platform import AdminPermission
from chatpad.models.scheduling import Location, Property, CalendarEvent, ScheduledReport
from chatpad.models.webhook import Webhook

ACCOUNT_ACCESS = "account_access"
ACCOUNT_ADMIN = "account_admin"

READ_ACTIONS = frozenset({"read", "list"})

# What happens to child rows when their parent is deleted
CASCADE = "cascade"
SET_NULL = "set_null"


@dataclass(frozen=True)
class ResourcePolicy:
    """
    Rule per action (default ACCOUNT_ACCESS) for one tenant table.

    parent links a child table to the row that owns it, as
    (resource_type, foreign key column). children lists the tables that
    point at this one, as (resource_type, foreign key column, CASCADE or
    SET_NULL). readonly_fields only change through a dedicated action.
    """

    model: Type[SQLModel]
    actions: Dict[str, str] = field(default_factory=dict)
    parent: Optional[Tuple[str, str]] = None
    children: Tuple[Tuple[str, str, str], ...] = ()
    hidden_fields: FrozenSet[str] = frozenset()
    readonly_fields: FrozenSet[str] = frozenset()
    generic_create: bool = True
    read_capability: str = AdminPermission.VIEW_ACCOUNTS
    write_capability: str = AdminPermission.MANAGE_ACCOUNTS

    def rule_for(self, action: str) -> str:
        return self.actions.get(action, ACCOUNT_ACCESS)

    def capability_for(self, action: str) -> str:
        return self.read_capability if action in READ_ACTIONS else self.write_capability


POLICIES: Dict[str, ResourcePolicy] = {
    "agents": ResourcePolicy(
        model=Agent,
        children=(
            ("knowledge_sources", "agent_id", CASCADE),
            ("conversations", "agent_id", CASCADE),
            ("api_keys", "agent_id", CASCADE),
        ),
    ),
    "knowledge_sources": ResourcePolicy(
        model=KnowledgeSource,
        parent=("agents", "agent_id"),
    ),
    "conversations": ResourcePolicy(
        model=Conversation,
        parent=("agents", "agent_id"),
        children=(
            ("messages", "conversation_id", CASCADE),
            ("leads", "conversation_id", SET_NULL),
        ),
    ),
    "messages": ResourcePolicy(
        model=Message,
        parent=("conversations", "conversation_id"),
    ),
    "leads": ResourcePolicy(
        model=Lead,
        parent=("conversations", "conversation_id"),
        children=(("calendar_events", "lead_id", SET_NULL),),
    ),
    "webhooks": ResourcePolicy(
        model=Webhook,
        actions={"delete": ACCOUNT_ADMIN, "rotate_secret": ACCOUNT_ADMIN},
        hidden_fields=frozenset({"secret"}),
        readonly_fields=frozenset({"secret"}),
        generic_create=False,
    ),
    "api_keys": ResourcePolicy(
        model=ApiKey,
        actions={"delete": ACCOUNT_ADMIN, "revoke": ACCOUNT_ADMIN},
        parent=("agents", "agent_id"),
        hidden_fields=frozenset({"key_hash"}),
        readonly_fields=frozenset({"key_hash", "key_prefix", "revoked_at", "last_used_at"}),
        generic_create=False,
    ),
    "scheduled_reports": ResourcePolicy(model=ScheduledReport),
    "custom_domains": ResourcePolicy(
        model=CustomDomain,
        actions={"delete": ACCOUNT_ADMIN},
    ),
    "locations": ResourcePolicy(
        model=Location,
        children=(
            ("properties", "location_id", SET_NULL),
            ("calendar_events", "location_id", SET_NULL),
        ),
    ),
    "properties": ResourcePolicy(
        model=Property,
        parent=("locations", "location_id"),
    ),
    "calendar_events": ResourcePolicy(
        model=CalendarEvent,
        parent=("locations", "location_id"),
    ),
    "automations": ResourcePolicy(
        model=Automation,
        actions={"delete": ACCOUNT_ADMIN},
    ),
}


def get_policy(resource_type: str) -> ResourcePolicy:
    """Fetch a resource policy or raise KeyError."""
    return POLICIES[resource_type]
