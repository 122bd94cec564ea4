"""In-memory user store: credential lookup and the per-tenant staff roster.

Credential hashes are ``salt$sha256(salt + password)``. The hashing scheme is
a stand-in; a real deployment supplies its own ``UserLookup``.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import threading
from dataclasses import replace

from src.core.constants import PASSWORD_SALT_BYTES
from src.core.interfaces import StaffCounter, UserLookup
from src.core.logging import get_logger
from src.core.types import PermissionGrants, Role, User

log = get_logger(__name__)


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt if salt is not None else secrets.token_hex(PASSWORD_SALT_BYTES)
    digest = hashlib.sha256(f"{salt}{password}".encode()).hexdigest()
    return f"{salt}${digest}"


def verify_password(password: str, credential_hash: str) -> bool:
    salt, sep, _ = credential_hash.partition("$")
    if not sep:
        return False
    return hmac.compare_digest(hash_password(password, salt), credential_hash)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class InMemoryUserStore(UserLookup, StaffCounter):
    """Thread-safe user store. Emails are unique across all tenants."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._email_index: dict[str, str] = {}  # normalized email -> user_id

    def add_user(self, user: User, password: str) -> User:
        """Store ``user`` with a freshly hashed credential."""
        with self._lock:
            return self._insert(user, password)

    def add_staff_within_quota(self, user: User, password: str, quota: int) -> User | None:
        """Insert a staff trainer only if the roster is below ``quota``.

        Count and insert happen under one lock, so two concurrent adds cannot
        both pass the check. Returns None when the quota is already reached.
        """
        if user.role is not Role.STAFF_TRAINER:
            msg = f"roster only holds staff trainers, got {user.role.value}"
            raise ValueError(msg)
        if user.tenant_id is None:
            msg = f"staff trainer {user.id} has no tenant"
            raise ValueError(msg)
        with self._lock:
            current = self.count_staff(user.tenant_id)
            if current >= quota:
                log.warning(
                    "staff_quota_reached",
                    tenant_id=user.tenant_id,
                    current=current,
                    quota=quota,
                )
                return None
            return self._insert(user, password)

    def find_by_email_and_password(self, email: str, password: str) -> User | None:
        with self._lock:
            user_id = self._email_index.get(_normalize_email(email))
            user = self._users.get(user_id) if user_id else None
        if user is None or not verify_password(password, user.credential_hash):
            return None
        return user

    def find_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def count_staff(self, tenant_id: str) -> int:
        with self._lock:
            return sum(
                1
                for u in self._users.values()
                if u.tenant_id == tenant_id and u.role is Role.STAFF_TRAINER
            )

    def list_staff(self, tenant_id: str) -> list[User]:
        """The tenant's StaffRoster."""
        with self._lock:
            return [
                u
                for u in self._users.values()
                if u.tenant_id == tenant_id and u.role is Role.STAFF_TRAINER
            ]

    def update_grants(self, user_id: str, grants: PermissionGrants) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = replace(user, grants=grants)
            self._users[user_id] = updated
        log.info("grants_updated", user_id=user_id, tenant_id=updated.tenant_id)
        return updated

    def remove_user(self, user_id: str) -> bool:
        with self._lock:
            user = self._users.pop(user_id, None)
            if user is None:
                return False
            self._email_index.pop(_normalize_email(user.email), None)
        log.info("user_removed", user_id=user_id, tenant_id=user.tenant_id)
        return True

    def _insert(self, user: User, password: str) -> User:
        email = _normalize_email(user.email)
        if user.id in self._users:
            msg = f"user already exists: {user.id}"
            raise ValueError(msg)
        if email in self._email_index:
            msg = f"email already registered: {email}"
            raise ValueError(msg)
        stored = replace(user, email=email, credential_hash=hash_password(password))
        self._users[stored.id] = stored
        self._email_index[email] = stored.id
        log.info(
            "user_created",
            user_id=stored.id,
            tenant_id=stored.tenant_id,
            role=stored.role.value,
        )
        return stored
