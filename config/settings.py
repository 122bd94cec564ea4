"""Gymfit global settings — loaded from environment variables via .env file."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

_PLACEHOLDER_SECRETS = ("change-me-in-production", "change-this-to-random-secret", "")


class Settings(BaseSettings):
    """All configuration flows through this class. Never read env vars directly."""

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Environment ──────────────────────────────────────────────
    gymfit_env: Literal["dev", "prod"] = "dev"

    # ── Sessions ─────────────────────────────────────────────────
    gymfit_session_secret: SecretStr = SecretStr("change-me-in-production")
    gymfit_session_max_age_hours: int = 24

    # ── Routing ──────────────────────────────────────────────────
    # First path segments that never name a tenant.
    gymfit_reserved_routes: list[str] = [
        "admin",
        "personal",
        "student",
        "login",
        "system",
        "onboarding",
    ]

    # ── Seed data ────────────────────────────────────────────────
    gymfit_plans_path: Path = PROJECT_ROOT / "config" / "plans.yaml"

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def _check_prod_secrets(self) -> "Settings":
        """Prevent production deployment with default secrets."""
        if self.gymfit_env == "prod":
            secret = self.gymfit_session_secret.get_secret_value()
            if secret in _PLACEHOLDER_SECRETS:
                msg = (
                    "GYMFIT_SESSION_SECRET must be set to a strong random value "
                    "in production. Generate one with: openssl rand -base64 32"
                )
                raise ValueError(msg)
        if self.gymfit_session_max_age_hours <= 0:
            msg = "GYMFIT_SESSION_MAX_AGE_HOURS must be positive"
            raise ValueError(msg)
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Singleton settings loader. Reads .env once."""
    global _settings_instance  # noqa: PLW0603
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
