# Models package - every table registered with SQLModel metadata
from chatpad.models.user import User, Profile
from chatpad.models.team import TeamMember, PendingInvitation
from chatpad.models.platform import UserRole, Subscription, ImpersonationSession
from chatpad.models.agent import Agent, KnowledgeSource, ApiKey, CustomDomain
from chatpad.models.conversation import Conversation, Message
from chatpad.models.lead import Lead
from chatpad.models.webhook import Webhook, WebhookLog
from chatpad.models.scheduling import Location, Property, CalendarEvent, ScheduledReport
from chatpad.models.automation import Automation
from chatpad.models.content import PlatformHCCategory, PlatformHCArticle, EmailTemplate
from chatpad.models.audit import AdminAuditLog
from chatpad.models.notification import Notification
from chatpad.models.dispatch import DispatchEvent
