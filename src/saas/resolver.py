"""Tenant Resolver — maps a routing path to a tenant context.

Resolution is a pure function of the path and the directory contents:
no caching, no side effects beyond a debug log line.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from src.core.interfaces import TenantLookup
from src.core.logging import get_logger
from src.core.types import NoTenant, ResolvedTenant, TenantContext, UnresolvedSlug

log = get_logger(__name__)


def split_path(path: str) -> list[str]:
    """Split a URL path into its non-empty segments, ignoring any query string."""
    path = path.split("?", 1)[0].split("#", 1)[0]
    return [segment for segment in path.split("/") if segment]


class TenantResolver:
    """Decides whether a route is tenant-scoped and, if so, for which tenant."""

    def __init__(self, directory: TenantLookup, reserved_routes: Iterable[str]) -> None:
        self._directory = directory
        self._reserved: frozenset[str] = frozenset(r.strip().lower() for r in reserved_routes)

    @property
    def reserved_routes(self) -> frozenset[str]:
        return self._reserved

    def resolve(self, path: str | Sequence[str]) -> TenantContext:
        """Resolve a path string or a sequence of path segments."""
        segments = split_path(path) if isinstance(path, str) else [s for s in path if s]
        if not segments:
            return NoTenant()

        candidate = segments[0].strip()
        if not candidate or candidate.lower() in self._reserved:
            return NoTenant()

        tenant = self._directory.find_by_slug(candidate)
        if tenant is None:
            log.debug("tenant_unresolved", candidate=candidate)
            return UnresolvedSlug(candidate=candidate)

        log.debug("tenant_resolved", slug=tenant.slug, tenant_id=tenant.id)
        return ResolvedTenant(tenant=tenant)
