"""Custom exception hierarchy for Gymfit tenancy.

Every error here is recoverable by the end user and must never crash the
caller.
"""

from __future__ import annotations

from typing import Any


class GymfitBaseError(Exception):
    """Base exception for all Gymfit errors."""

    code: str = "error"
    user_message: str = "Something went wrong."

    def __init__(self, message: str = "", context: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.user_message)
        self.context: dict[str, Any] = context or {}


# ── Authentication ───────────────────────────────────────────────

class AuthError(GymfitBaseError):
    """Authentication failed."""

    code = "auth_error"
    user_message = "Authentication failed."


class InvalidCredentialsError(AuthError):
    """Wrong email, password or tenant. Deliberately does not say which."""

    code = "invalid_credentials"
    user_message = "Invalid email or password."


class TenantBlockedError(AuthError):
    """Credentials are correct but the tenant's access is suspended."""

    code = "tenant_blocked"
    user_message = "Access to this gym is currently suspended."

    def __init__(self, reason: str | None = None, context: dict[str, Any] | None = None) -> None:
        super().__init__(self.user_message, context)
        self.reason = reason


# ── Tenancy ──────────────────────────────────────────────────────

class TenantNotFoundError(GymfitBaseError):
    """A tenant-scoped route names a slug that is not in the directory."""

    code = "tenant_not_found"
    user_message = "This gym could not be found."

    def __init__(self, slug: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(f"tenant not found: {slug!r}", context)
        self.slug = slug


class SessionInvalidatedError(GymfitBaseError):
    """A previously valid session no longer matches the active tenant."""

    code = "session_invalidated"
    user_message = "Your session has ended. Please sign in again."


# ── Authorization ────────────────────────────────────────────────

class AccessDeniedError(GymfitBaseError):
    """The acting session may not perform a mutating operation."""

    code = "access_denied"
    user_message = "You do not have permission to do that."
