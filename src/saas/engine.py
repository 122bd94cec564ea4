"""TenancyEngine — the four call surfaces the rendering layer talks to.

    resolve_tenant(path)                        -> TenantContext
    authenticate(email, password, context)      -> Session (raises AuthError)
    session_manager(storage) / restore / start / end
    can(session, action), can_add_staff(tenant) -> bool

Each interaction gets its own immutable ``RequestContext`` built once by
``begin_request``; the engine itself holds no per-user mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from config.settings import Settings, get_settings
from src.core.exceptions import AccessDeniedError, SessionInvalidatedError, TenantNotFoundError
from src.core.interfaces import SessionStorage
from src.core.logging import get_logger
from src.core.types import (
    Action,
    PermissionGrants,
    ResolvedTenant,
    Role,
    Session,
    Tenant,
    TenantContext,
    UnresolvedSlug,
    User,
)
from src.saas.auth import CredentialAuthenticator
from src.saas.gate import AuthorizationGate, StaffQuota
from src.saas.plans import PlanCatalog, get_plan_catalog
from src.saas.resolver import TenantResolver
from src.saas.session import SessionCodec, SessionManager
from src.saas.tenant import TenantDirectory
from src.saas.users import InMemoryUserStore

log = get_logger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Resolved tenant and reconciled session for one interaction."""

    path: str
    tenant_context: TenantContext
    session: Session | None
    session_invalidated: bool = False

    @property
    def tenant(self) -> Tenant | None:
        if isinstance(self.tenant_context, ResolvedTenant):
            return self.tenant_context.tenant
        return None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None


@dataclass(frozen=True)
class StaffAddResult:
    """Outcome of a staff add. A full roster is a message, not an error."""

    user: User | None
    quota: StaffQuota

    @property
    def added(self) -> bool:
        return self.user is not None

    @property
    def message(self) -> str:
        if self.added:
            return "Staff trainer added."
        return self.quota.message


class TenancyEngine:
    """Wires the catalog, directory, user store, resolver, authenticator and gate."""

    def __init__(
        self,
        directory: TenantDirectory,
        users: InMemoryUserStore,
        catalog: PlanCatalog | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.catalog = catalog or get_plan_catalog()
        self.directory = directory
        self.users = users
        self.resolver = TenantResolver(directory, self._settings.gymfit_reserved_routes)
        reserved = self.resolver.reserved_routes
        shadowed = [t.slug for t in directory.list_tenants() if t.slug in reserved]
        if shadowed:
            msg = f"tenant slugs collide with reserved routes: {sorted(shadowed)}"
            raise ValueError(msg)
        self.authenticator = CredentialAuthenticator(users)
        self.gate = AuthorizationGate(directory, users)
        self._codec = SessionCodec.from_settings(self._settings)

    # ── Resolution ───────────────────────────────────────────────

    def resolve_tenant(self, path: str) -> TenantContext:
        return self.resolver.resolve(path)

    @staticmethod
    def require_tenant(context: TenantContext) -> Tenant | None:
        """Tenant for a scoped route; raises ``TenantNotFoundError`` for unknown slugs."""
        if isinstance(context, UnresolvedSlug):
            raise TenantNotFoundError(context.candidate)
        if isinstance(context, ResolvedTenant):
            return context.tenant
        return None

    # ── Authentication & sessions ────────────────────────────────

    def authenticate(
        self,
        email: str,
        password: str,
        context: TenantContext,
        now: datetime | None = None,
    ) -> Session:
        return self.authenticator.authenticate(email, password, context, now=now)

    def session_manager(self, storage: SessionStorage | None = None) -> SessionManager:
        """A fresh manager for one actor (browser tab, API client)."""
        return SessionManager(self.users, self._codec, storage)

    def begin_request(self, path: str, sessions: SessionManager) -> RequestContext:
        """Resolve the route, then reconcile or restore the actor's session."""
        context = self.resolve_tenant(path)
        invalidated = False
        if sessions.current is not None:
            try:
                session = sessions.reconcile(context)
            except SessionInvalidatedError as exc:
                log.info("request_session_invalidated", path=path, **exc.context)
                session = None
                invalidated = True
        else:
            session = sessions.resume(context)
        return RequestContext(
            path=path,
            tenant_context=context,
            session=session,
            session_invalidated=invalidated,
        )

    # ── Authorization ────────────────────────────────────────────

    def can(self, session: Session | None, action: Action) -> bool:
        return self.gate.can(session, action)

    def can_add_staff(self, tenant: Tenant) -> bool:
        return self.gate.can_add_staff(tenant)

    def add_staff(
        self,
        session: Session | None,
        user: User,
        password: str,
    ) -> StaffAddResult:
        """Add a staff trainer to the acting manager's tenant, within quota."""
        tenant = self._acting_tenant(session, Action.MANAGE_STAFF)
        if user.role is not Role.STAFF_TRAINER or user.tenant_id != tenant.id:
            msg = "new staff must be a staff trainer of the acting tenant"
            raise ValueError(msg)

        added = self.users.add_staff_within_quota(user, password, tenant.plan.personnel_quota)
        quota = self.gate.staff_quota(tenant)
        return StaffAddResult(user=added, quota=quota)

    def update_grants(
        self,
        session: Session | None,
        user_id: str,
        grants: PermissionGrants,
    ) -> User:
        """Change a staff trainer's grants. Only their own tenant's manager may."""
        tenant = self._acting_tenant(session, Action.MANAGE_STAFF)
        target = self.users.find_by_id(user_id)
        if target is None or target.tenant_id != tenant.id or target.role is not Role.STAFF_TRAINER:
            raise AccessDeniedError(context={"user_id": user_id})
        updated = self.users.update_grants(user_id, grants)
        if updated is None:
            # Removed between the lookup and the update
            raise AccessDeniedError(context={"user_id": user_id})
        return updated

    def _acting_tenant(self, session: Session | None, action: Action) -> Tenant:
        if session is None or not self.can(session, action) or session.tenant_id is None:
            raise AccessDeniedError(context={"action": action.value})
        tenant = self.directory.get(session.tenant_id)
        if tenant is None:
            raise AccessDeniedError(context={"action": action.value})
        return tenant
