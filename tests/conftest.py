"""Shared fixtures — a seeded catalog, two gyms and their users.

Mirrors the demo data: ``caxufit`` on the Elite plan and ``profit`` on
Premium, plus one system operator.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import SecretStr

from config.settings import Settings
from src.core.types import PermissionGrants, Plan, PlanTier, Role, Tenant, User
from src.saas.engine import TenancyEngine
from src.saas.plans import PlanCatalog
from src.saas.tenant import TenantDirectory
from src.saas.users import InMemoryUserStore

CAXUFIT_ID = "academia-1"
PROFIT_ID = "academia-2"
PASSWORD = "secret123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gymfit_env="dev",
        gymfit_session_secret=SecretStr("test-session-secret"),
        gymfit_session_max_age_hours=24,
    )


@pytest.fixture
def catalog() -> PlanCatalog:
    return PlanCatalog()


@pytest.fixture
def base_plan(catalog: PlanCatalog) -> Plan:
    plan = catalog.by_tier(PlanTier.BASE)
    assert plan is not None
    return plan


@pytest.fixture
def mid_plan(catalog: PlanCatalog) -> Plan:
    plan = catalog.by_tier(PlanTier.MID)
    assert plan is not None
    return plan


@pytest.fixture
def top_plan(catalog: PlanCatalog) -> Plan:
    plan = catalog.by_tier(PlanTier.TOP)
    assert plan is not None
    return plan


@pytest.fixture
def directory(settings: Settings, top_plan: Plan, mid_plan: Plan) -> TenantDirectory:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return TenantDirectory(
        [
            Tenant(id=CAXUFIT_ID, slug="caxufit", name="CaxuFit Academia", plan=top_plan, created_at=created),
            Tenant(id=PROFIT_ID, slug="profit", name="Profit Fitness", plan=mid_plan, created_at=created),
        ],
        reserved_slugs=settings.gymfit_reserved_routes,
    )


@pytest.fixture
def users() -> InMemoryUserStore:
    store = InMemoryUserStore()
    seed = [
        User(id="user-admin-system", email="admin@ficha.life", role=Role.SYSTEM_OPERATOR, name="Admin Sistema"),
        User(id="user-gerente-1", email="gerente@caxufit.com", role=Role.TENANT_MANAGER, tenant_id=CAXUFIT_ID),
        User(
            id="user-personal-1",
            email="joao@caxufit.com",
            role=Role.STAFF_TRAINER,
            tenant_id=CAXUFIT_ID,
            grants=PermissionGrants(
                can_delete_clients=True,
                can_define_custom_fields=True,
                can_manage_storefront=True,
            ),
        ),
        User(id="user-personal-2", email="maria@caxufit.com", role=Role.STAFF_TRAINER, tenant_id=CAXUFIT_ID),
        User(id="user-aluno-1", email="ana@email.com", role=Role.END_CLIENT, tenant_id=CAXUFIT_ID),
        User(id="user-gerente-2", email="gerente@profit.com", role=Role.TENANT_MANAGER, tenant_id=PROFIT_ID),
        User(id="user-personal-4", email="lucas@profit.com", role=Role.STAFF_TRAINER, tenant_id=PROFIT_ID),
    ]
    for user in seed:
        store.add_user(user, PASSWORD)
    return store


@pytest.fixture
def engine(
    directory: TenantDirectory,
    users: InMemoryUserStore,
    catalog: PlanCatalog,
    settings: Settings,
) -> TenancyEngine:
    return TenancyEngine(directory, users, catalog=catalog, settings=settings)
