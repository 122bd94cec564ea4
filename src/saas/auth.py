"""Credential Authenticator — email/password sign-in scoped to a tenant."""

from __future__ import annotations

from datetime import datetime, timezone

from src.core.exceptions import InvalidCredentialsError, TenantBlockedError
from src.core.interfaces import UserLookup
from src.core.logging import get_logger
from src.core.types import ResolvedTenant, Session, TenantContext

log = get_logger(__name__)


class CredentialAuthenticator:
    """Validates credentials strictly inside the resolved tenant's boundary.

    Every mismatch (unknown email, wrong password, wrong tenant, no tenant on
    the route) surfaces as the same ``InvalidCredentialsError``. The real
    reason only goes to the log.
    """

    def __init__(self, users: UserLookup) -> None:
        self._users = users

    def authenticate(
        self,
        email: str,
        password: str,
        context: TenantContext,
        now: datetime | None = None,
    ) -> Session:
        """Return a new, unpersisted session or raise an ``AuthError``."""
        issued_at = now or datetime.now(timezone.utc)

        user = self._users.find_by_email_and_password(email, password)
        if user is None:
            log.warning("auth_failed", reason="bad_credentials")
            raise InvalidCredentialsError()

        if user.is_operator:
            log.info("auth_success", user_id=user.id, role=user.role.value)
            return Session(user=user, tenant_id=None, issued_at=issued_at)

        if not isinstance(context, ResolvedTenant):
            log.warning(
                "auth_failed",
                reason="no_tenant_on_route",
                user_id=user.id,
                context=type(context).__name__,
            )
            raise InvalidCredentialsError()

        tenant = context.tenant
        if user.tenant_id != tenant.id:
            log.warning(
                "auth_failed",
                reason="wrong_tenant",
                user_id=user.id,
                tenant_id=tenant.id,
            )
            raise InvalidCredentialsError()

        if not tenant.accepts_logins:
            reason = tenant.blocked_reason if tenant.blocked else "inactive"
            log.warning("auth_failed_blocked", user_id=user.id, tenant_id=tenant.id, reason=reason)
            raise TenantBlockedError(reason=reason, context={"tenant_id": tenant.id})

        log.info("auth_success", user_id=user.id, tenant_id=tenant.id, role=user.role.value)
        return Session(user=user, tenant_id=tenant.id, issued_at=issued_at)
