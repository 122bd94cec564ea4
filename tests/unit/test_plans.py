"""Tests for the Plan Catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.core.types import Feature, Plan, PlanFeatures, PlanTier
from src.saas.plans import DEFAULT_PLANS, PlanCatalog

_SEED_FILE = Path(__file__).resolve().parents[2] / "config" / "plans.yaml"


class TestDefaultCatalog:
    """Tests for the built-in tiers."""

    def test_three_tiers_in_order(self) -> None:
        catalog = PlanCatalog()
        tiers = [p.tier for p in catalog.list_plans()]
        assert tiers == [PlanTier.BASE, PlanTier.MID, PlanTier.TOP]

    def test_quotas(self) -> None:
        catalog = PlanCatalog()
        assert catalog.require("plan-master").personnel_quota == 1
        assert catalog.require("plan-premium").personnel_quota == 3
        assert catalog.require("plan-elite").personnel_quota == 10

    def test_top_tier_enables_everything(self) -> None:
        elite = PlanCatalog().by_tier(PlanTier.TOP)
        assert elite is not None
        assert elite.features.enabled_set() == frozenset(Feature)

    def test_base_tier_enables_nothing(self) -> None:
        master = PlanCatalog().by_tier(PlanTier.BASE)
        assert master is not None
        assert master.features.enabled_set() == frozenset()

    def test_mid_tier_features(self) -> None:
        premium = PlanCatalog().require("plan-premium")
        assert premium.features.enabled(Feature.CUSTOM_FIELDS) is True
        assert premium.features.enabled(Feature.ANALYTICS_CHARTS) is True
        assert premium.features.enabled(Feature.STOREFRONT) is False

    def test_unknown_plan(self) -> None:
        catalog = PlanCatalog()
        assert catalog.get("plan-missing") is None
        assert "plan-missing" not in catalog
        with pytest.raises(KeyError):
            catalog.require("plan-missing")


class TestCatalogQueries:
    """Tests for upgrade helpers."""

    def test_cheapest_plan_with_feature(self) -> None:
        catalog = PlanCatalog()
        storefront = catalog.cheapest_plan_with(Feature.STOREFRONT)
        charts = catalog.cheapest_plan_with(Feature.ANALYTICS_CHARTS)
        assert storefront is not None and storefront.id == "plan-elite"
        assert charts is not None and charts.id == "plan-premium"

    def test_is_upgrade(self) -> None:
        catalog = PlanCatalog()
        master = catalog.require("plan-master")
        elite = catalog.require("plan-elite")
        assert PlanCatalog.is_upgrade(master, elite) is True
        assert PlanCatalog.is_upgrade(elite, master) is False
        assert PlanCatalog.is_upgrade(elite, elite) is False

    def test_duplicate_ids_rejected(self) -> None:
        plan = Plan(id="p", tier=PlanTier.BASE, name="p", personnel_quota=1)
        with pytest.raises(ValueError, match="duplicate"):
            PlanCatalog([plan, plan])


class TestCatalogSeeding:
    """Tests for YAML loading."""

    def test_seed_file_matches_defaults(self) -> None:
        catalog = PlanCatalog.from_yaml(_SEED_FILE)
        assert catalog.list_plans() == list(DEFAULT_PLANS)

    def test_missing_file_falls_back(self, tmp_path: Path) -> None:
        catalog = PlanCatalog.from_yaml(tmp_path / "nope.yaml")
        assert len(catalog) == len(DEFAULT_PLANS)

    def test_custom_file(self, tmp_path: Path) -> None:
        seed = tmp_path / "plans.yaml"
        seed.write_text(
            "plans:\n"
            "  - id: plan-solo\n"
            "    tier: base\n"
            "    name: solo\n"
            "    personnel_quota: 2\n"
            "    features:\n"
            "      analytics_charts: true\n",
            encoding="utf-8",
        )
        catalog = PlanCatalog.from_yaml(seed)
        solo = catalog.require("plan-solo")
        assert len(catalog) == 1
        assert solo.display_name == "Solo"
        assert solo.features == PlanFeatures(analytics_charts=True)

    def test_negative_quota_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            Plan(id="p", tier=PlanTier.BASE, name="p", personnel_quota=-1)
