"""Tenant Directory — slug-keyed registry of gyms.

Each tenant record is an immutable snapshot. Mutations (block, plan change,
deactivation) build a replacement record and swap it in under a lock, so a
concurrent reader sees either the old record or the new one, never a mix.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from config.settings import get_settings
from src.core.interfaces import TenantLookup
from src.core.logging import get_logger
from src.core.types import Plan, PlanTier, Tenant

log = get_logger(__name__)


@dataclass
class DirectoryStats:
    """Aggregated counts for the system operator overview."""

    total: int = 0
    active: int = 0
    blocked: int = 0
    by_tier: dict[PlanTier, int] = field(default_factory=dict)


class TenantDirectory(TenantLookup):
    """In-memory tenant store. Replace with a DB-backed lookup for production."""

    def __init__(
        self,
        tenants: list[Tenant] | None = None,
        reserved_slugs: Iterable[str] | None = None,
    ) -> None:
        if reserved_slugs is None:
            reserved_slugs = get_settings().gymfit_reserved_routes
        # Route segments the resolver never treats as a tenant
        self._reserved = frozenset(s.lower() for s in reserved_slugs)
        self._lock = threading.RLock()
        self._tenants: dict[str, Tenant] = {}
        self._slug_index: dict[str, str] = {}  # slug -> tenant_id
        for tenant in tenants or []:
            self.register(tenant)

    def register(self, tenant: Tenant) -> Tenant:
        """Add a provisioned tenant. Slugs and ids must be unique.

        A slug equal to a reserved route segment is rejected, since the
        resolver would never reach it.
        """
        if tenant.slug in self._reserved:
            msg = f"slug is a reserved route: {tenant.slug}"
            raise ValueError(msg)
        with self._lock:
            if tenant.id in self._tenants:
                msg = f"tenant already exists: {tenant.id}"
                raise ValueError(msg)
            if tenant.slug in self._slug_index:
                msg = f"slug already taken: {tenant.slug}"
                raise ValueError(msg)
            self._tenants[tenant.id] = tenant
            self._slug_index[tenant.slug] = tenant.id

        log.info(
            "tenant_registered",
            tenant_id=tenant.id,
            slug=tenant.slug,
            plan=tenant.plan.id,
        )
        return tenant

    def find_by_slug(self, slug: str) -> Tenant | None:
        key = slug.strip().lower()
        with self._lock:
            tenant_id = self._slug_index.get(key)
            if tenant_id is None:
                return None
            return self._tenants.get(tenant_id)

    def get(self, tenant_id: str) -> Tenant | None:
        with self._lock:
            return self._tenants.get(tenant_id)

    def block(self, tenant_id: str, reason: str | None = None) -> Tenant | None:
        """Suspend all logins for the tenant."""
        tenant = self._swap(tenant_id, blocked=True, blocked_reason=reason)
        if tenant is not None:
            log.info("tenant_blocked", tenant_id=tenant_id, reason=reason)
        return tenant

    def unblock(self, tenant_id: str) -> Tenant | None:
        tenant = self._swap(tenant_id, blocked=False, blocked_reason=None)
        if tenant is not None:
            log.info("tenant_unblocked", tenant_id=tenant_id)
        return tenant

    def activate(self, tenant_id: str) -> Tenant | None:
        tenant = self._swap(tenant_id, is_active=True)
        if tenant is not None:
            log.info("tenant_activated", tenant_id=tenant_id)
        return tenant

    def deactivate(self, tenant_id: str) -> Tenant | None:
        tenant = self._swap(tenant_id, is_active=False)
        if tenant is not None:
            log.info("tenant_deactivated", tenant_id=tenant_id)
        return tenant

    def change_plan(self, tenant_id: str, plan: Plan) -> Tenant | None:
        with self._lock:
            current = self._tenants.get(tenant_id)
            old_plan = current.plan.id if current else None
            tenant = self._swap(tenant_id, plan=plan)
        if tenant is not None:
            log.info("plan_updated", tenant_id=tenant_id, old=old_plan, new=plan.id)
        return tenant

    def list_tenants(self, active_only: bool = False) -> list[Tenant]:
        with self._lock:
            tenants = list(self._tenants.values())
        if active_only:
            tenants = [t for t in tenants if t.accepts_logins]
        return tenants

    def stats(self) -> DirectoryStats:
        tenants = self.list_tenants()
        tiers = Counter(t.plan.tier for t in tenants)
        return DirectoryStats(
            total=len(tenants),
            active=sum(1 for t in tenants if t.accepts_logins),
            blocked=sum(1 for t in tenants if t.blocked),
            by_tier=dict(tiers),
        )

    def _swap(self, tenant_id: str, **changes: object) -> Tenant | None:
        with self._lock:
            current = self._tenants.get(tenant_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._tenants[tenant_id] = updated
            return updated
