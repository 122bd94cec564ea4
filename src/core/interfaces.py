"""Abstract base classes — ports the engine consumes from its data layer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.core.types import Tenant, User


class TenantLookup(ABC):
    """Read side of the Tenant Directory."""

    @abstractmethod
    def find_by_slug(self, slug: str) -> Tenant | None:
        """Return the tenant routed by ``slug``, or None."""
        ...

    @abstractmethod
    def get(self, tenant_id: str) -> Tenant | None:
        """Return the tenant with ``tenant_id``, or None."""
        ...


class UserLookup(ABC):
    """Credential and identity lookups against the user store."""

    @abstractmethod
    def find_by_email_and_password(self, email: str, password: str) -> User | None:
        """Return the user whose email and password both match, or None."""
        ...

    @abstractmethod
    def find_by_id(self, user_id: str) -> User | None:
        """Return the user with ``user_id``, or None."""
        ...


class StaffCounter(ABC):
    """Roster size provider used for personnel quota checks."""

    @abstractmethod
    def count_staff(self, tenant_id: str) -> int:
        """Return the current number of staff trainers in the tenant."""
        ...


class SessionStorage(ABC):
    """Holds one actor's persisted session blob across restarts."""

    @abstractmethod
    def load(self) -> str | None:
        ...

    @abstractmethod
    def save(self, blob: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...
