"""Session Manager — persists, restores, reconciles and ends sessions.

The persisted blob carries exactly two fields, ``userId`` and ``tenantId``,
signed and timestamped with itsdangerous. Anything that fails to verify or
deviates from that schema is treated as "no session", never as an error.

States: UNAUTHENTICATED (initial, and where every failure lands) and
AUTHENTICATED. A session always ends in UNAUTHENTICATED and can always be
re-established by signing in again.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from itsdangerous import BadData, URLSafeTimedSerializer
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config.settings import Settings
from src.core.constants import SESSION_FIELD_TENANT, SESSION_FIELD_USER, SESSION_SIGNER_SALT
from src.core.exceptions import SessionInvalidatedError
from src.core.interfaces import SessionStorage, UserLookup
from src.core.logging import get_logger
from src.core.types import (
    NoTenant,
    Session,
    SessionState,
    TenantContext,
    UnresolvedSlug,
)

log = get_logger(__name__)


class PersistedSession(BaseModel):
    """The fixed on-disk schema. Extra or missing fields invalidate the blob."""

    model_config = ConfigDict(extra="forbid", frozen=True, strict=True)

    user_id: str = Field(alias=SESSION_FIELD_USER, min_length=1)
    tenant_id: str | None = Field(alias=SESSION_FIELD_TENANT, min_length=1)


class SessionCodec:
    """Signs sessions into opaque blobs and verifies them back."""

    def __init__(self, secret: str, max_age_seconds: int) -> None:
        self._serializer = URLSafeTimedSerializer(secret, salt=SESSION_SIGNER_SALT)
        self._max_age = max_age_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionCodec:
        return cls(
            secret=settings.gymfit_session_secret.get_secret_value(),
            max_age_seconds=settings.gymfit_session_max_age_hours * 3600,
        )

    def dumps(self, session: Session) -> str:
        payload = PersistedSession.model_validate(
            {SESSION_FIELD_USER: session.user_id, SESSION_FIELD_TENANT: session.tenant_id}
        )
        return self._serializer.dumps(payload.model_dump(by_alias=True))

    def loads(self, blob: object) -> tuple[PersistedSession, datetime] | None:
        """Return the payload and its signing time, or None if unusable."""
        if not isinstance(blob, str) or not blob:
            return None
        try:
            data, signed_at = self._serializer.loads(
                blob, max_age=self._max_age, return_timestamp=True
            )
        except BadData as exc:
            log.debug("session_blob_rejected", error=type(exc).__name__)
            return None
        try:
            payload = PersistedSession.model_validate(data)
        except ValidationError:
            log.debug("session_blob_schema_mismatch")
            return None
        return payload, signed_at


class MemorySessionStorage(SessionStorage):
    """Process-local slot for one actor's session blob."""

    def __init__(self, blob: str | None = None) -> None:
        self._blob = blob

    def load(self) -> str | None:
        return self._blob

    def save(self, blob: str) -> None:
        self._blob = blob

    def clear(self) -> None:
        self._blob = None


def rejection_reason(session: Session, context: TenantContext) -> str | None:
    """Why ``session`` cannot stand under ``context``; None when it can.

    On a non-tenant route a tenant-scoped session survives provisionally
    until the next tenant-scoped navigation re-checks it.
    """
    if isinstance(context, UnresolvedSlug):
        return "unresolved_slug"
    if isinstance(context, NoTenant) or session.user.is_operator:
        return None
    tenant = context.tenant
    if session.tenant_id != tenant.id:
        return "tenant_mismatch"
    if not tenant.accepts_logins:
        return "tenant_blocked"
    return None


class SessionManager:
    """Owns one actor's session lifecycle."""

    def __init__(
        self,
        users: UserLookup,
        codec: SessionCodec,
        storage: SessionStorage | None = None,
    ) -> None:
        self._users = users
        self._codec = codec
        self._storage = storage if storage is not None else MemorySessionStorage()
        self._current: Session | None = None

    @property
    def current(self) -> Session | None:
        return self._current

    @property
    def state(self) -> SessionState:
        if self._current is None:
            return SessionState.UNAUTHENTICATED
        return SessionState.AUTHENTICATED

    def start(self, session: Session) -> None:
        """Persist ``session`` as the active one. Repeating it is a no-op."""
        if self._current == session:
            return
        self._storage.save(self._codec.dumps(session))
        self._current = session
        log.info("session_started", user_id=session.user_id, tenant_id=session.tenant_id)

    def restore(self, persisted: str | None, context: TenantContext) -> Session | None:
        """Re-validate a persisted blob against the current route's tenant."""
        session, reason = self._validate(persisted, context)
        if session is None:
            if persisted is not None or self._current is not None:
                # A caller-supplied blob must not wipe a different stored one
                self._discard(reason, clear_storage=persisted == self._storage.load())
            return None
        self._current = session
        log.debug("session_restored", user_id=session.user_id, tenant_id=session.tenant_id)
        return session

    def resume(self, context: TenantContext) -> Session | None:
        """Restore from this manager's own storage."""
        return self.restore(self._storage.load(), context)

    def reconcile(self, context: TenantContext) -> Session | None:
        """Re-check the active session after a navigation.

        The user is re-read, so revoked grants and removals take effect on the
        next navigation. Raises ``SessionInvalidatedError`` (after ending the
        session) when the user is gone or has moved tenant, or when the session
        no longer fits the route's tenant.
        """
        session = self._current
        if session is None:
            return None
        user = self._users.find_by_id(session.user_id)
        if user is None:
            reason: str | None = "unknown_user"
        elif user.tenant_id != session.tenant_id:
            reason = "tenant_changed"
        else:
            if user != session.user:
                session = replace(session, user=user)
            reason = rejection_reason(session, context)
        if reason is not None:
            self._discard(reason)
            raise SessionInvalidatedError(
                context={"user_id": session.user_id, "reason": reason}
            )
        self._current = session
        return session

    def end(self) -> None:
        """Log out. Always succeeds."""
        user_id = self._current.user_id if self._current else None
        self._storage.clear()
        self._current = None
        log.info("session_ended", user_id=user_id)

    def _validate(
        self, persisted: str | None, context: TenantContext
    ) -> tuple[Session | None, str]:
        decoded = self._codec.loads(persisted)
        if decoded is None:
            return None, "absent" if persisted is None else "malformed"
        payload, signed_at = decoded

        user = self._users.find_by_id(payload.user_id)
        if user is None:
            return None, "unknown_user"
        if user.tenant_id != payload.tenant_id:
            return None, "tenant_changed"

        session = Session(user=user, tenant_id=payload.tenant_id, issued_at=signed_at)
        reason = rejection_reason(session, context)
        if reason is not None:
            return None, reason
        return session, ""

    def _discard(self, reason: str, clear_storage: bool = True) -> None:
        user_id = self._current.user_id if self._current else None
        if clear_storage:
            self._storage.clear()
        self._current = None
        log.info("session_discarded", user_id=user_id, reason=reason)
