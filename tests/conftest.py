import pytest

from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.models import ActionContext, BindingScope, EmbeddableRef, Trigger
from embeddable_actions.infrastructure.persistence import InMemoryBindingStore, SQLiteBindingStore
from embeddable_actions.reactor.engine import TriggerDispatcher
from embeddable_actions.reactor.resolution import ActionResolver

from sample_actions import (
    AbandoningFactory,
    ExclusiveActionFactory,
    FailingFactory,
    FilterActionFactory,
    LockedActionFactory,
    NavigateActionFactory,
    SettingsFactory,
    SlowFactory,
)


@pytest.fixture
def trigger_registry():
    registry = TriggerRegistry()
    registry.register(Trigger(id='click', title='Click'))
    registry.register(Trigger(id='hover', title='Hover'))
    return registry


@pytest.fixture
def factory_registry():
    registry = ActionFactoryRegistry()
    for factory in (
        NavigateActionFactory(),
        FilterActionFactory(),
        ExclusiveActionFactory(),
        SettingsFactory(),
        AbandoningFactory(),
        FailingFactory(),
        SlowFactory(),
        LockedActionFactory(),
    ):
        registry.register(factory)
    return registry


@pytest.fixture
def memory_store(trigger_registry, factory_registry):
    return InMemoryBindingStore(trigger_registry, factory_registry)


@pytest.fixture
def sqlite_store(tmp_path, trigger_registry, factory_registry):
    store = SQLiteBindingStore({'db_path': str(tmp_path / 'bindings.db')}, trigger_registry, factory_registry)
    yield store
    store.close()


@pytest.fixture(params=['memory', 'sqlite'])
def store(request):
    """Each binding store implementation in turn."""
    return request.getfixturevalue(f'{request.param}_store')


@pytest.fixture
def resolver(trigger_registry, store):
    return ActionResolver(trigger_registry, store)


@pytest.fixture
def dispatcher(resolver):
    return TriggerDispatcher(resolver)


@pytest.fixture
def dashboard():
    return EmbeddableRef(id='dash1', type='dashboard')


@pytest.fixture
def panel1(dashboard):
    return EmbeddableRef(id='panel1', type='map', container=dashboard)


@pytest.fixture
def panel2(dashboard):
    return EmbeddableRef(id='panel2', type='map', container=dashboard)


@pytest.fixture
def panel1_scope():
    return BindingScope(embeddable_id='panel1', embeddable_type='map')


@pytest.fixture
def dashboard_scope():
    return BindingScope(embeddable_id='dash1', embeddable_type='dashboard')


@pytest.fixture
def panel1_context(panel1):
    return ActionContext.for_embeddable(panel1)
