import pytest
from faker import Faker

from holidayrules.core.config import EngineConfig
from holidayrules.core.registry import JurisdictionRegistry


@pytest.fixture
def fake():
    """Seeded Faker so randomized inputs are reproducible."""
    fake = Faker()
    fake.seed_instance(20240331)
    return fake


@pytest.fixture
def registry():
    """Registry with default config and the bundled jurisdictions loaded."""
    JurisdictionRegistry.clear()
    JurisdictionRegistry.configure(EngineConfig())
    JurisdictionRegistry.discover_jurisdictions()
    yield JurisdictionRegistry
    JurisdictionRegistry.clear()
    JurisdictionRegistry.configure(EngineConfig())


@pytest.fixture
def empty_registry():
    JurisdictionRegistry.clear()
    JurisdictionRegistry.configure(EngineConfig())
    yield JurisdictionRegistry
    JurisdictionRegistry.clear()
    JurisdictionRegistry.configure(EngineConfig())
