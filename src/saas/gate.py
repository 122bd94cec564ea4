"""Authorization Gate — allow/deny decisions from plan features, grants and roles.

Every action is one row in ``ACTION_RULES``:

- ``roles``: who may ever perform it.
- ``feature``: plan flag that must be on, if any.
- ``grant``: per-user grant a staff trainer must hold, if any. Tenant
  managers hold every grant implicitly; other roles never do.

Adding a gated action is a table entry, not new branching. All decisions are
pure functions of the session, the directory snapshot and the roster count.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.interfaces import StaffCounter, TenantLookup
from src.core.logging import get_logger
from src.core.types import Action, Feature, Grant, Role, Session, Tenant

log = get_logger(__name__)

_MANAGER = Role.TENANT_MANAGER
_STAFF = Role.STAFF_TRAINER
_CLIENT = Role.END_CLIENT
_OPERATOR = Role.SYSTEM_OPERATOR


@dataclass(frozen=True)
class ActionRule:
    roles: frozenset[Role]
    feature: Feature | None = None
    grant: Grant | None = None

    @property
    def role_inherent(self) -> bool:
        return self.feature is None and self.grant is None


ACTION_RULES: dict[Action, ActionRule] = {
    # ── Feature / grant gated ────────────────────────────────────
    Action.USE_CUSTOM_FIELDS: ActionRule(
        roles=frozenset({_MANAGER, _STAFF}),
        feature=Feature.CUSTOM_FIELDS,
        grant=Grant.DEFINE_CUSTOM_FIELDS,
    ),
    Action.MANAGE_STOREFRONT: ActionRule(
        roles=frozenset({_MANAGER, _STAFF}),
        feature=Feature.STOREFRONT,
        grant=Grant.MANAGE_STOREFRONT,
    ),
    Action.VIEW_ANALYTICS: ActionRule(
        roles=frozenset({_MANAGER, _STAFF, _CLIENT}),
        feature=Feature.ANALYTICS_CHARTS,
    ),
    Action.BROWSE_STOREFRONT: ActionRule(
        roles=frozenset({_MANAGER, _CLIENT}),
        feature=Feature.STOREFRONT,
    ),
    Action.USE_CUSTOM_LANDING_PAGE: ActionRule(
        roles=frozenset({_MANAGER}),
        feature=Feature.CUSTOM_LANDING_PAGE,
    ),
    Action.DELETE_CLIENTS: ActionRule(
        roles=frozenset({_MANAGER, _STAFF}),
        grant=Grant.DELETE_CLIENTS,
    ),
    # ── Role-inherent ────────────────────────────────────────────
    Action.VIEW_OWN_DASHBOARD: ActionRule(roles=frozenset(Role)),
    Action.MANAGE_STAFF: ActionRule(roles=frozenset({_MANAGER})),
    Action.MANAGE_SETTINGS: ActionRule(roles=frozenset({_MANAGER})),
    Action.VIEW_CLIENTS: ActionRule(roles=frozenset({_MANAGER, _STAFF})),
    Action.REVIEW_REQUESTS: ActionRule(roles=frozenset({_MANAGER, _STAFF})),
    Action.BUILD_INTAKE_FORM: ActionRule(roles=frozenset({_STAFF})),
    Action.SHARE_INVITE_LINK: ActionRule(roles=frozenset({_STAFF})),
    Action.SUBMIT_REQUEST: ActionRule(roles=frozenset({_CLIENT})),
    Action.VIEW_WORKOUT_PLANS: ActionRule(roles=frozenset({_CLIENT})),
    Action.MANAGE_TENANTS: ActionRule(roles=frozenset({_OPERATOR})),
    Action.MANAGE_PLANS: ActionRule(roles=frozenset({_OPERATOR})),
    Action.VIEW_PAYMENTS: ActionRule(roles=frozenset({_OPERATOR})),
}


@dataclass(frozen=True)
class StaffQuota:
    """Roster usage against the plan's personnel quota."""

    used: int
    limit: int
    plan_name: str

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def can_add(self) -> bool:
        return self.used < self.limit

    @property
    def message(self) -> str:
        if self.can_add:
            return f"{self.used}/{self.limit} staff trainers"
        return (
            f"Your {self.plan_name} plan allows only {self.limit} staff trainer(s). "
            "Upgrade to add more."
        )


class AuthorizationGate:
    """Evaluates ``ACTION_RULES`` for a session."""

    def __init__(
        self,
        tenants: TenantLookup,
        staff: StaffCounter,
        rules: dict[Action, ActionRule] | None = None,
    ) -> None:
        self._tenants = tenants
        self._staff = staff
        self._rules = rules if rules is not None else ACTION_RULES

    def can(self, session: Session | None, action: Action) -> bool:
        """Whether ``session`` may perform ``action``. Unauthenticated is always False."""
        if session is None:
            return False
        rule = self._rules.get(action)
        if rule is None or session.role not in rule.roles:
            return False
        if rule.role_inherent:
            return True

        if rule.feature is not None:
            tenant = self._tenant_of(session)
            if tenant is None or not tenant.plan.features.enabled(rule.feature):
                return False

        if rule.grant is not None:
            if session.role is Role.TENANT_MANAGER:
                return True
            if session.role is not Role.STAFF_TRAINER:
                return False
            return session.user.grants.has(rule.grant)
        return True

    def allowed_actions(self, session: Session | None) -> frozenset[Action]:
        """Every action the session may perform, e.g. for building menus."""
        return frozenset(a for a in self._rules if self.can(session, a))

    def staff_quota(self, tenant: Tenant) -> StaffQuota:
        """Roster count read now, never cached."""
        return StaffQuota(
            used=self._staff.count_staff(tenant.id),
            limit=tenant.plan.personnel_quota,
            plan_name=tenant.plan.display_name,
        )

    def can_add_staff(self, tenant: Tenant) -> bool:
        quota = self.staff_quota(tenant)
        if not quota.can_add:
            log.debug(
                "staff_quota_full",
                tenant_id=tenant.id,
                used=quota.used,
                limit=quota.limit,
            )
        return quota.can_add

    def _tenant_of(self, session: Session) -> Tenant | None:
        if session.tenant_id is None:
            return None
        return self._tenants.get(session.tenant_id)
