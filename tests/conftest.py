import pytest
from types import SimpleNamespace

from dietcraft.services.plan_parser import PlanTextParser
from dietcraft.services.stores.memory import MemoryStore
from dietcraft.services.usage_service import UsageService
from dietcraft.services.client_service import ClientService
from dietcraft.services.diet_plan_service import DietPlanService
from dietcraft.services.branding_service import BrandingService
from dietcraft.services.profile_service import ProfileService
from dietcraft.services.logo_service import LogoService

@pytest.fixture
def plan_parser():
    """Fixture for PlanTextParser instance."""
    return PlanTextParser()

@pytest.fixture
def memory_store():
    """Fresh in-memory document store."""
    return MemoryStore()

@pytest.fixture
def usage_service(memory_store):
    """Quota gate with the default limit of three generations per day."""
    return UsageService(store=memory_store, daily_limit=3)

@pytest.fixture
def services(monkeypatch, memory_store, usage_service):
    """Swap every module-level service for one backed by a fresh store."""
    bundle = SimpleNamespace(
        store=memory_store,
        usage=usage_service,
        clients=ClientService(memory_store),
        plans=DietPlanService(memory_store),
        branding=BrandingService(memory_store),
        profiles=ProfileService(memory_store),
        logos=LogoService(memory_store),
    )
    for module in ("dietcraft.services.plan_service", "dietcraft.main"):
        monkeypatch.setattr(f"{module}.usage_service", bundle.usage)
        monkeypatch.setattr(f"{module}.client_service", bundle.clients)
        monkeypatch.setattr(f"{module}.diet_plan_service", bundle.plans)
    monkeypatch.setattr("dietcraft.main.branding_service", bundle.branding)
    monkeypatch.setattr("dietcraft.main.profile_service", bundle.profiles)
    monkeypatch.setattr("dietcraft.main.logo_service", bundle.logos)
    return bundle
