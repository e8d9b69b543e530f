import pytest

from delegatekit.builder import DelegationBuilder
from delegatekit.conf import Settings
from delegatekit.container import InMemoryContainer
from delegatekit.conversion import DefaultConversionService
from delegatekit.executor import DelegationExecutor
from delegatekit.registry import DelegationRegistry
from delegatekit.service import DelegationService


@pytest.fixture
def conf() -> Settings:
    return Settings()


@pytest.fixture
def registry() -> DelegationRegistry:
    return DelegationRegistry()


@pytest.fixture
def builder(registry: DelegationRegistry, conf: Settings) -> DelegationBuilder:
    return DelegationBuilder(registry, settings=conf)


@pytest.fixture
def container() -> InMemoryContainer:
    return InMemoryContainer()


@pytest.fixture
def conversion() -> DefaultConversionService:
    return DefaultConversionService()


@pytest.fixture
def executor(container, conversion, conf) -> DelegationExecutor:
    return DelegationExecutor(container, conversion, settings=conf)


@pytest.fixture
def service(registry, executor) -> DelegationService:
    return DelegationService(registry, executor)
