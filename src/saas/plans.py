"""Plan Catalog — subscription tiers with personnel quotas and feature flags.

Seeded once from ``config/plans.yaml`` (falling back to the built-in
defaults) and never mutated at runtime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from src.core.constants import PLAN_ELITE_ID, PLAN_MASTER_ID, PLAN_PREMIUM_ID
from src.core.logging import get_logger
from src.core.types import Feature, Plan, PlanFeatures, PlanTier

log = get_logger(__name__)


DEFAULT_PLANS: tuple[Plan, ...] = (
    Plan(
        id=PLAN_MASTER_ID,
        tier=PlanTier.BASE,
        name="master",
        display_name="Master",
        personnel_quota=1,
        features=PlanFeatures(),
        price_monthly=49.90,
        price_yearly=479.00,
        description="Ideal para academias pequenas",
    ),
    Plan(
        id=PLAN_PREMIUM_ID,
        tier=PlanTier.MID,
        name="premium",
        display_name="Premium",
        personnel_quota=3,
        features=PlanFeatures(custom_fields=True, analytics_charts=True),
        price_monthly=99.90,
        price_yearly=959.00,
        description="Para academias em crescimento",
    ),
    Plan(
        id=PLAN_ELITE_ID,
        tier=PlanTier.TOP,
        name="elite",
        display_name="Elite",
        personnel_quota=10,
        features=PlanFeatures(
            custom_fields=True,
            analytics_charts=True,
            storefront=True,
            custom_landing_page=True,
        ),
        price_monthly=199.90,
        price_yearly=1919.00,
        description="Recursos completos",
    ),
)


class PlanCatalog:
    """Read-only lookup table of plans, keyed by id."""

    def __init__(self, plans: list[Plan] | tuple[Plan, ...] = DEFAULT_PLANS) -> None:
        self._plans: dict[str, Plan] = {}
        for plan in plans:
            if plan.id in self._plans:
                msg = f"duplicate plan id: {plan.id}"
                raise ValueError(msg)
            self._plans[plan.id] = plan

    @classmethod
    def from_yaml(cls, path: Path) -> PlanCatalog:
        """Load plans from a YAML seed file with fallback to the defaults."""
        try:
            with path.open(encoding="utf-8") as fh:
                config: dict[str, Any] = yaml.safe_load(fh) or {}
            plans = [_plan_from_mapping(item) for item in config.get("plans", [])]
            if plans:
                log.info("plan_catalog_loaded", path=str(path), plans=len(plans))
                return cls(plans)
        except Exception as exc:
            log.warning("plan_catalog_fallback", path=str(path), error=str(exc))
        return cls(DEFAULT_PLANS)

    def get(self, plan_id: str) -> Plan | None:
        return self._plans.get(plan_id)

    def require(self, plan_id: str) -> Plan:
        plan = self._plans.get(plan_id)
        if plan is None:
            msg = f"unknown plan: {plan_id}"
            raise KeyError(msg)
        return plan

    def by_tier(self, tier: PlanTier) -> Plan | None:
        for plan in self._plans.values():
            if plan.tier is tier:
                return plan
        return None

    def list_plans(self) -> list[Plan]:
        """All plans, cheapest tier first."""
        return sorted(self._plans.values(), key=lambda p: (p.tier.rank, p.price_monthly))

    def cheapest_plan_with(self, feature: Feature) -> Plan | None:
        """Lowest tier enabling ``feature``; the target of an upgrade prompt."""
        for plan in self.list_plans():
            if plan.features.enabled(feature):
                return plan
        return None

    @staticmethod
    def is_upgrade(current: Plan, target: Plan) -> bool:
        return target.tier.rank > current.tier.rank

    def __contains__(self, plan_id: object) -> bool:
        return plan_id in self._plans

    def __len__(self) -> int:
        return len(self._plans)


def _plan_from_mapping(item: dict[str, Any]) -> Plan:
    flags = item.get("features") or {}
    return Plan(
        id=str(item["id"]),
        tier=PlanTier(item["tier"]),
        name=str(item.get("name", item["id"])),
        display_name=str(item.get("display_name", "")),
        personnel_quota=int(item["personnel_quota"]),
        features=PlanFeatures(**{f.value: bool(flags.get(f.value, False)) for f in Feature}),
        price_monthly=float(item.get("price_monthly", 0.0)),
        price_yearly=float(item.get("price_yearly", 0.0)),
        description=str(item.get("description", "")),
    )


_catalog_instance: PlanCatalog | None = None


def get_plan_catalog() -> PlanCatalog:
    """Singleton catalog loader. Reads the seed file once."""
    global _catalog_instance  # noqa: PLW0603
    if _catalog_instance is None:
        from config.settings import get_settings

        _catalog_instance = PlanCatalog.from_yaml(get_settings().gymfit_plans_path)
    return _catalog_instance
