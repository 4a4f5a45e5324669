import logging
import textwrap

import pytest

from embeddable_actions.configs import ConfigLoader
from embeddable_actions.configs.config_utils import ConfigMerger
from embeddable_actions.core.exceptions import ConfigError


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding='utf-8')


@pytest.fixture
def config_dir(tmp_path):
    _write(tmp_path / 'default' / 'bindings.yaml', """
        storage:
          backend: memory
          db_path: ${TEST_BINDINGS_DB:-runtime/default.db}
        editor:
          hide_trigger_ids: [context_menu]
        catalog:
          trigger_files: [default/triggers.yaml]
    """)
    _write(tmp_path / 'staging' / 'bindings.yaml', """
        storage:
          backend: sqlite
        editor:
          action_types: [navigate]
        logging:
          level: debug
    """)
    return tmp_path


@pytest.mark.asyncio
async def test_packaged_defaults_load():
    config = await ConfigLoader().load_config()

    assert config.env == 'default'
    assert config.storage.backend == 'memory'
    assert config.catalog.trigger_files == ['default/triggers.yaml']
    assert config.editor.action_types is None
    logging.info('✓ Packaged default configuration validates.')


@pytest.mark.asyncio
async def test_env_layer_overrides_default_layer(config_dir):
    config = await ConfigLoader(config_dir).load_config(env='staging')

    assert config.env == 'staging'
    assert config.storage.backend == 'sqlite'
    assert config.storage.db_path == 'runtime/default.db'
    assert config.editor.action_types == ['navigate']
    assert config.editor.hide_trigger_ids == ['context_menu']
    assert config.logging.level == 'DEBUG'


@pytest.mark.asyncio
async def test_env_placeholder_reads_environment(config_dir, monkeypatch):
    monkeypatch.setenv('TEST_BINDINGS_DB', '/var/lib/bindings.db')
    config = await ConfigLoader(config_dir).load_config()
    assert config.storage.db_path == '/var/lib/bindings.db'


@pytest.mark.asyncio
async def test_missing_env_layer_falls_back_to_default(config_dir, caplog):
    with caplog.at_level(logging.WARNING):
        config = await ConfigLoader(config_dir).load_config(env='prod')

    assert config.env == 'prod'
    assert config.storage.backend == 'memory'
    assert 'ENV_BINDINGS_CONFIG (prod) not found' in caplog.text


@pytest.mark.asyncio
async def test_provided_config_skips_yaml_layers(config_dir):
    config = await ConfigLoader(config_dir).load_config(provided_config={'storage': {'backend': 'sqlite', 'db_path': 'x.db'}})

    assert config.storage.backend == 'sqlite'
    assert config.storage.db_path == 'x.db'
    assert config.catalog.trigger_files == []
    assert config.editor.hide_trigger_ids == []


@pytest.mark.asyncio
@pytest.mark.parametrize('bad', [
    {'storage': {'backend': 'redis'}},
    {'storage': {'pool': 3}},
    {'editor': {'create_timeout_s': 0}},
    {'logging': {'level': 'LOUD'}},
    {'unknown_section': {}},
])
async def test_invalid_config_raises_config_error(bad):
    with pytest.raises(ConfigError):
        await ConfigLoader().load_config(provided_config=bad)


@pytest.mark.asyncio
async def test_unparseable_yaml_raises_config_error(tmp_path):
    _write(tmp_path / 'default' / 'bindings.yaml', 'storage: [unclosed\n')
    with pytest.raises(ConfigError):
        await ConfigLoader(tmp_path).load_config()


def test_merger_recurses_into_dicts_and_replaces_lists():
    base = {'catalog': {'factories': ['a'], 'triggers': []}, 'env': 'default'}
    merged = ConfigMerger.merge(base, {'catalog': {'factories': ['b']}})

    assert merged == {'catalog': {'factories': ['b'], 'triggers': []}, 'env': 'default'}
    assert base['catalog']['factories'] == ['a']
