"""System-wide constants. All magic numbers and strings live here."""

from __future__ import annotations

import re

# ── Routing ──────────────────────────────────────────────────────
# Lowercase, URL-safe, 1-63 chars, no leading/trailing hyphen.
SLUG_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

# ── Session Persistence ──────────────────────────────────────────
SESSION_SIGNER_SALT = "gymfit.session"
SESSION_FIELD_USER = "userId"
SESSION_FIELD_TENANT = "tenantId"

# ── Credentials ──────────────────────────────────────────────────
PASSWORD_SALT_BYTES = 16

# ── Plan Catalog Defaults ────────────────────────────────────────
PLAN_MASTER_ID = "plan-master"
PLAN_PREMIUM_ID = "plan-premium"
PLAN_ELITE_ID = "plan-elite"
