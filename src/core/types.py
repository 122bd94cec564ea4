"""System-wide shared types — the single source of truth for all data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from src.core.constants import SLUG_PATTERN


# ── Enums ────────────────────────────────────────────────────────

class Role(str, Enum):
    SYSTEM_OPERATOR = "system_operator"
    TENANT_MANAGER = "tenant_manager"
    STAFF_TRAINER = "staff_trainer"
    END_CLIENT = "end_client"


class PlanTier(str, Enum):
    BASE = "base"
    MID = "mid"
    TOP = "top"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK: dict[PlanTier, int] = {
    PlanTier.BASE: 0,
    PlanTier.MID: 1,
    PlanTier.TOP: 2,
}


class Feature(str, Enum):
    """Optional capabilities toggled per plan."""

    CUSTOM_FIELDS = "custom_fields"
    ANALYTICS_CHARTS = "analytics_charts"
    STOREFRONT = "storefront"
    CUSTOM_LANDING_PAGE = "custom_landing_page"


class Grant(str, Enum):
    """Explicit per-user permissions, meaningful for staff trainers."""

    DELETE_CLIENTS = "can_delete_clients"
    DEFINE_CUSTOM_FIELDS = "can_define_custom_fields"
    MANAGE_STOREFRONT = "can_manage_storefront"


class Action(str, Enum):
    # Feature and/or grant gated
    USE_CUSTOM_FIELDS = "use_custom_fields"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_STOREFRONT = "manage_storefront"
    BROWSE_STOREFRONT = "browse_storefront"
    USE_CUSTOM_LANDING_PAGE = "use_custom_landing_page"
    DELETE_CLIENTS = "delete_clients"
    # Role-inherent
    VIEW_OWN_DASHBOARD = "view_own_dashboard"
    MANAGE_STAFF = "manage_staff"
    VIEW_CLIENTS = "view_clients"
    REVIEW_REQUESTS = "review_requests"
    MANAGE_SETTINGS = "manage_settings"
    BUILD_INTAKE_FORM = "build_intake_form"
    SHARE_INVITE_LINK = "share_invite_link"
    SUBMIT_REQUEST = "submit_request"
    VIEW_WORKOUT_PLANS = "view_workout_plans"
    MANAGE_TENANTS = "manage_tenants"
    MANAGE_PLANS = "manage_plans"
    VIEW_PAYMENTS = "view_payments"


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


# ── Plans & Tenants ──────────────────────────────────────────────

@dataclass(frozen=True)
class PlanFeatures:
    """Boolean feature flags carried by a plan."""

    custom_fields: bool = False
    analytics_charts: bool = False
    storefront: bool = False
    custom_landing_page: bool = False

    def enabled(self, feature: Feature) -> bool:
        return bool(getattr(self, feature.value))

    def enabled_set(self) -> frozenset[Feature]:
        return frozenset(f for f in Feature if self.enabled(f))


@dataclass(frozen=True)
class Plan:
    """A subscription tier. Immutable once referenced by a tenant."""

    id: str
    tier: PlanTier
    name: str
    personnel_quota: int
    features: PlanFeatures = field(default_factory=PlanFeatures)
    display_name: str = ""
    price_monthly: float = 0.0
    price_yearly: float = 0.0
    description: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            msg = "plan id must not be empty"
            raise ValueError(msg)
        if self.personnel_quota < 0:
            msg = f"personnel_quota cannot be negative: {self.personnel_quota}"
            raise ValueError(msg)
        if not self.display_name:
            object.__setattr__(self, "display_name", self.name.title())


@dataclass(frozen=True)
class Tenant:
    """A gym. The slug is its routing identifier."""

    id: str
    slug: str
    name: str
    plan: Plan
    is_active: bool = True
    blocked: bool = False
    blocked_reason: str | None = None
    email: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.id:
            msg = "tenant id must not be empty"
            raise ValueError(msg)
        if not SLUG_PATTERN.match(self.slug):
            msg = f"slug must be lowercase and URL-safe: {self.slug!r}"
            raise ValueError(msg)
        if not self.blocked and self.blocked_reason is not None:
            object.__setattr__(self, "blocked_reason", None)

    @property
    def accepts_logins(self) -> bool:
        return self.is_active and not self.blocked


# ── Users & Sessions ─────────────────────────────────────────────

@dataclass(frozen=True)
class PermissionGrants:
    """Per-user grants. Inert unless the matching plan feature is enabled."""

    can_delete_clients: bool = False
    can_define_custom_fields: bool = False
    can_manage_storefront: bool = False

    def has(self, grant: Grant) -> bool:
        return bool(getattr(self, grant.value))


@dataclass(frozen=True)
class User:
    """An account. Every non-operator belongs to exactly one tenant."""

    id: str
    email: str
    role: Role
    tenant_id: str | None = None
    name: str = ""
    credential_hash: str = field(default="", repr=False, compare=False)
    grants: PermissionGrants = field(default_factory=PermissionGrants)

    def __post_init__(self) -> None:
        if self.role is Role.SYSTEM_OPERATOR:
            if self.tenant_id is not None:
                msg = "system operators cannot belong to a tenant"
                raise ValueError(msg)
        elif not self.tenant_id:
            msg = f"{self.role.value} users must belong to a tenant"
            raise ValueError(msg)

    @property
    def is_operator(self) -> bool:
        return self.role is Role.SYSTEM_OPERATOR


@dataclass(frozen=True)
class Session:
    """An authenticated user bound to the tenant seen at sign-in time."""

    user: User
    tenant_id: str | None
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.issued_at.tzinfo is None:
            msg = "Session issued_at must be timezone-aware (UTC)"
            raise ValueError(msg)

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> Role:
        return self.user.role


# ── Tenant Context ───────────────────────────────────────────────

@dataclass(frozen=True)
class NoTenant:
    """The route is not tenant-scoped (home page, system routes)."""


@dataclass(frozen=True)
class ResolvedTenant:
    """The route's first segment named a known tenant."""

    tenant: Tenant


@dataclass(frozen=True)
class UnresolvedSlug:
    """The route looked tenant-scoped but the slug is unknown."""

    candidate: str


TenantContext = NoTenant | ResolvedTenant | UnresolvedSlug
