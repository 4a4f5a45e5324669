import logging

import pytest

from embeddable_actions.bootstrap import BindingServices, CatalogLoader, bootstrap_bindings, import_by_path
from embeddable_actions.core.exceptions import CatalogLoadError, DuplicateIdError
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.models import ActionContext, EmbeddableRef, Trigger
from embeddable_actions.editor.event_editor import EditorState
from embeddable_actions.infrastructure.persistence import InMemoryBindingStore, SQLiteBindingStore

from sample_actions import NavigateActionFactory


@pytest.mark.asyncio
async def test_bootstrap_with_packaged_configuration():
    services = await bootstrap_bindings(factories=[NavigateActionFactory()], configure_logs=False)

    assert isinstance(services, BindingServices)
    assert [t.id for t in services.trigger_registry.get_triggers()] == ['click', 'hover', 'apply_filter', 'context_menu']
    assert services.factory_registry.has_factory('navigate')
    assert isinstance(services.store, InMemoryBindingStore)
    assert services.resolver.store is services.store
    assert services.dispatcher.resolver is services.resolver
    logging.info('✓ Services bootstrapped from packaged configuration.')


@pytest.mark.asyncio
async def test_inline_catalogue_and_factory_import_paths():
    config = {
        'catalog': {
            'triggers': [
                {'id': 'drag', 'title': 'Drag'},
                {'id': 'legacy', 'title': 'Legacy', 'enabled': False},
            ],
            'factories': ['sample_actions:NavigateActionFactory', 'sample_actions.FilterActionFactory'],
        },
    }
    services = await bootstrap_bindings(config, triggers=[Trigger(id='drop', title='Drop')], configure_logs=False)

    assert [t.id for t in services.trigger_registry.get_triggers()] == ['drag', 'drop']
    assert list(services.factory_registry.get_factories()) == ['navigate', 'filter']


@pytest.mark.asyncio
async def test_duplicate_trigger_across_sources_fails_fast():
    config = {'catalog': {'trigger_files': ['default/triggers.yaml'], 'triggers': [{'id': 'click', 'title': 'Click again'}]}}
    with pytest.raises(DuplicateIdError):
        await bootstrap_bindings(config, configure_logs=False)


@pytest.mark.asyncio
async def test_sqlite_backend_end_to_end(tmp_path):
    config = {
        'storage': {'backend': 'sqlite', 'db_path': str(tmp_path / 'bindings.db')},
        'editor': {'hide_trigger_ids': ['context_menu']},
        'catalog': {'trigger_files': ['default/triggers.yaml'], 'factories': ['sample_actions:NavigateActionFactory']},
    }
    services = await bootstrap_bindings(config, configure_logs=False)
    try:
        assert isinstance(services.store, SQLiteBindingStore)

        panel = EmbeddableRef(id='panel1', type='map', container=EmbeddableRef(id='dash1', type='dashboard'))
        editor = services.create_editor(panel)
        assert 'context_menu' not in [t.id for t in editor.visible_triggers()]

        await editor.request_create()
        await editor.create_action('navigate')
        saved = await editor.save_action(['click'])
        await editor.complete_edit()

        assert editor.state is EditorState.LISTING
        assert [e.action_id for e in editor.events] == [saved.id]

        report = await services.dispatcher.fire('click', ActionContext.for_embeddable(panel))
        assert report.results[saved.id] == 'navigate:https://example.org/docs'
    finally:
        services.close()


@pytest.mark.asyncio
async def test_create_editor_overrides_config_defaults():
    services = await bootstrap_bindings({'editor': {'action_types': ['navigate']}},
                                        factories=[NavigateActionFactory()], configure_logs=False)
    editor = services.create_editor(EmbeddableRef(id='p', type='map'), action_types=None)
    assert editor.action_types is None
    assert services.create_editor(None).action_types == ['navigate']


def test_import_by_path_variants():
    assert import_by_path('sample_actions:NavigateActionFactory') is NavigateActionFactory
    assert import_by_path('sample_actions.NavigateActionFactory') is NavigateActionFactory

    for bad in ('nodots', 'no_such_module_xyz:Thing', 'sample_actions:Missing'):
        with pytest.raises(CatalogLoadError):
            import_by_path(bad)


@pytest.mark.parametrize('path', ['sample_actions:NavigateAction', 'os.path:sep'])
def test_load_factories_rejects_non_factories(path):
    loader = CatalogLoader(TriggerRegistry(), ActionFactoryRegistry())
    with pytest.raises(CatalogLoadError):
        loader.load_factories([path])


def test_load_trigger_file_errors(tmp_path):
    loader = CatalogLoader(TriggerRegistry(), ActionFactoryRegistry())

    with pytest.raises(CatalogLoadError):
        loader.load_trigger_file(tmp_path / 'missing.yaml')

    empty = tmp_path / 'empty.yaml'
    empty.write_text('version: "1.0"\n', encoding='utf-8')
    assert loader.load_trigger_file(empty) == []

    invalid = tmp_path / 'invalid.yaml'
    invalid.write_text('triggers:\n  - id: click\n', encoding='utf-8')
    with pytest.raises(CatalogLoadError):
        loader.load_trigger_file(invalid)


def test_load_trigger_file_warns_on_unknown_version(tmp_path, caplog):
    registry = TriggerRegistry()
    path = tmp_path / 'triggers.yaml'
    path.write_text('version: "2.0"\ntriggers:\n  - id: click\n    title: Click\n', encoding='utf-8')

    with caplog.at_level(logging.WARNING):
        loaded = CatalogLoader(registry, ActionFactoryRegistry()).load_trigger_file(path)

    assert [t.id for t in loaded] == ['click']
    assert "Unexpected version '2.0'" in caplog.text
