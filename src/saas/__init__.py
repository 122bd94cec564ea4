"""SaaS multi-tenant layer: tenant resolution, sign-in, sessions and authorization."""

from src.saas.auth import CredentialAuthenticator
from src.saas.engine import RequestContext, StaffAddResult, TenancyEngine
from src.saas.gate import ACTION_RULES, ActionRule, AuthorizationGate, StaffQuota
from src.saas.plans import DEFAULT_PLANS, PlanCatalog, get_plan_catalog
from src.saas.resolver import TenantResolver, split_path
from src.saas.session import MemorySessionStorage, PersistedSession, SessionCodec, SessionManager
from src.saas.tenant import DirectoryStats, TenantDirectory
from src.saas.users import InMemoryUserStore

__all__ = [
    "ACTION_RULES",
    "ActionRule",
    "AuthorizationGate",
    "CredentialAuthenticator",
    "DEFAULT_PLANS",
    "DirectoryStats",
    "InMemoryUserStore",
    "MemorySessionStorage",
    "PersistedSession",
    "PlanCatalog",
    "RequestContext",
    "SessionCodec",
    "SessionManager",
    "StaffAddResult",
    "StaffQuota",
    "TenancyEngine",
    "TenantDirectory",
    "TenantResolver",
    "get_plan_catalog",
    "split_path",
]
