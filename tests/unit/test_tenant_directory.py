"""Tests for the Tenant Directory."""

from __future__ import annotations

import threading

import pytest

from src.core.types import Plan, PlanTier, Tenant
from src.saas.tenant import TenantDirectory


class TestTenantRecord:
    """Tests for Tenant construction invariants."""

    @pytest.mark.parametrize("slug", ["CaxuFit", "caxu fit", "-caxufit", "caxufit-", "", "caxu_fit"])
    def test_rejects_bad_slugs(self, slug: str, top_plan: Plan) -> None:
        with pytest.raises(ValueError, match="slug"):
            Tenant(id="t1", slug=slug, name="Gym", plan=top_plan)

    def test_reason_dropped_when_not_blocked(self, top_plan: Plan) -> None:
        t = Tenant(id="t1", slug="gym", name="Gym", plan=top_plan, blocked_reason="late payment")
        assert t.blocked_reason is None
        assert t.accepts_logins is True


class TestTenantDirectory:
    """Tests for registration, lookup and atomic updates."""

    def test_find_by_slug(self, directory: TenantDirectory) -> None:
        t = directory.find_by_slug("caxufit")
        assert t is not None
        assert t.id == "academia-1"
        assert directory.find_by_slug("CAXUFIT") == t
        assert directory.find_by_slug("nowhere") is None

    def test_get_by_id(self, directory: TenantDirectory) -> None:
        t = directory.get("academia-2")
        assert t is not None
        assert t.slug == "profit"

    def test_duplicate_slug_rejected(self, directory: TenantDirectory, top_plan: Plan) -> None:
        with pytest.raises(ValueError, match="slug already taken"):
            directory.register(Tenant(id="academia-9", slug="caxufit", name="Copy", plan=top_plan))

    def test_duplicate_id_rejected(self, directory: TenantDirectory, top_plan: Plan) -> None:
        with pytest.raises(ValueError, match="already exists"):
            directory.register(Tenant(id="academia-1", slug="other", name="Copy", plan=top_plan))

    @pytest.mark.parametrize("slug", ["login", "admin", "system"])
    def test_reserved_route_slug_rejected(
        self, directory: TenantDirectory, top_plan: Plan, slug: str
    ) -> None:
        with pytest.raises(ValueError, match="reserved route"):
            directory.register(Tenant(id="t-reserved", slug=slug, name="Clash", plan=top_plan))
        assert directory.get("t-reserved") is None

    def test_custom_reserved_slugs(self, top_plan: Plan) -> None:
        directory = TenantDirectory(reserved_slugs=["Help"])
        with pytest.raises(ValueError, match="reserved route"):
            directory.register(Tenant(id="t1", slug="help", name="Help", plan=top_plan))
        assert directory.register(Tenant(id="t2", slug="login", name="Login Gym", plan=top_plan))

    def test_block_and_unblock(self, directory: TenantDirectory) -> None:
        before = directory.get("academia-1")
        blocked = directory.block("academia-1", reason="payment overdue")
        assert blocked is not None
        assert blocked.blocked is True
        assert blocked.blocked_reason == "payment overdue"
        assert blocked.accepts_logins is False
        # Earlier snapshot is untouched
        assert before is not None and before.blocked is False

        unblocked = directory.unblock("academia-1")
        assert unblocked is not None
        assert unblocked.blocked is False
        assert unblocked.blocked_reason is None

    def test_deactivate(self, directory: TenantDirectory) -> None:
        t = directory.deactivate("academia-2")
        assert t is not None and t.accepts_logins is False
        assert [x.slug for x in directory.list_tenants(active_only=True)] == ["caxufit"]
        directory.activate("academia-2")
        assert len(directory.list_tenants(active_only=True)) == 2

    def test_change_plan(self, directory: TenantDirectory, base_plan: Plan) -> None:
        t = directory.change_plan("academia-1", base_plan)
        assert t is not None
        assert t.plan.tier is PlanTier.BASE
        assert directory.find_by_slug("caxufit") == t

    def test_unknown_tenant_updates_return_none(self, directory: TenantDirectory, base_plan: Plan) -> None:
        assert directory.block("missing") is None
        assert directory.change_plan("missing", base_plan) is None

    def test_stats(self, directory: TenantDirectory) -> None:
        directory.block("academia-2", reason="fraud")
        stats = directory.stats()
        assert stats.total == 2
        assert stats.active == 1
        assert stats.blocked == 1
        assert stats.by_tier == {PlanTier.TOP: 1, PlanTier.MID: 1}

    def test_concurrent_readers_see_whole_records(
        self, directory: TenantDirectory, base_plan: Plan, top_plan: Plan
    ) -> None:
        seen: list[tuple[str, int]] = []

        def writer() -> None:
            for i in range(200):
                directory.change_plan("academia-1", base_plan if i % 2 else top_plan)

        def reader() -> None:
            for _ in range(200):
                t = directory.get("academia-1")
                assert t is not None
                seen.append((t.plan.id, t.plan.personnel_quota))

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for th in threads:
            th.start()
        for th in threads:
            th.join()

        assert set(seen) <= {("plan-master", 1), ("plan-elite", 10)}
