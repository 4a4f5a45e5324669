"""
Service wiring for trigger/action bindings.

Initialization order is fixed and completes before any resolution call:

1. configuration (layered YAML or a provided mapping)
2. logging
3. trigger registry (catalogue files, inline entries, explicit triggers)
4. action factory registry (import paths, explicit factories)
5. binding store (``memory`` or ``sqlite``)
6. resolver, then dispatcher

Each call builds fresh registries, so tests can bootstrap an isolated set of
services per test.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from embeddable_actions.configs.config_loader import ConfigLoader
from embeddable_actions.configs.schema import BindingsConfig, LoggingConfig, StorageConfig
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import ActionFactory
from embeddable_actions.domain.models import Trigger
from embeddable_actions.domain.ports.binding_store_port import BindingStorePort
from embeddable_actions.editor.event_editor import EventEditor
from embeddable_actions.infrastructure.persistence import InMemoryBindingStore, SQLiteBindingStore
from embeddable_actions.reactor.engine import TriggerDispatcher
from embeddable_actions.reactor.resolution import ActionResolver

from .catalog_loader import CatalogLoader

logger = logging.getLogger(__name__)


@dataclass
class BindingServices:
    config: BindingsConfig
    trigger_registry: TriggerRegistry
    factory_registry: ActionFactoryRegistry
    store: BindingStorePort
    resolver: ActionResolver
    dispatcher: TriggerDispatcher

    def create_editor(self, embeddable: Any, **overrides: Any) -> EventEditor:
        options = {
            'action_types': self.config.editor.action_types,
            'hide_trigger_ids': self.config.editor.hide_trigger_ids,
            'create_timeout_s': self.config.editor.create_timeout_s,
        }
        options.update(overrides)
        return EventEditor(
            embeddable,
            trigger_registry=self.trigger_registry,
            factory_registry=self.factory_registry,
            store=self.store,
            resolver=self.resolver,
            **options,
        )

    def close(self) -> None:
        close = getattr(self.store, 'close', None)
        if callable(close):
            close()


def configure_logging(cfg: LoggingConfig) -> None:
    logging.basicConfig(level=cfg.level, format=cfg.format)


def build_store(storage: StorageConfig, trigger_registry: TriggerRegistry, factory_registry: ActionFactoryRegistry) -> BindingStorePort:
    if storage.backend == 'sqlite':
        return SQLiteBindingStore(storage.model_dump(), trigger_registry, factory_registry)
    return InMemoryBindingStore(trigger_registry, factory_registry)


def _resolve_catalog_path(path: str, config_dir: Path) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    in_config_dir = config_dir / candidate
    return in_config_dir if in_config_dir.exists() else candidate


async def bootstrap_bindings(
    config: Optional[Union[BindingsConfig, Mapping[str, Any]]] = None,
    *,
    env: Optional[str] = None,
    config_dir: Optional[Path] = None,
    triggers: Iterable[Trigger] = (),
    factories: Iterable[ActionFactory] = (),
    configure_logs: bool = True,
) -> BindingServices:
    loader = ConfigLoader(config_dir)
    if not isinstance(config, BindingsConfig):
        config = await loader.load_config(env=env, provided_config=config)

    if configure_logs:
        configure_logging(config.logging)
    logger.info("Bootstrapping bindings (env=%s, storage=%s)", config.env, config.storage.backend)

    trigger_registry = TriggerRegistry()
    factory_registry = ActionFactoryRegistry()
    catalog = CatalogLoader(trigger_registry, factory_registry)

    for trigger_file in config.catalog.trigger_files:
        catalog.load_trigger_file(_resolve_catalog_path(trigger_file, loader.config_dir))
    catalog.register_triggers(config.catalog.triggers)
    for trigger in triggers:
        trigger_registry.register(trigger)

    catalog.load_factories(config.catalog.factories)
    for factory in factories:
        factory_registry.register(factory)

    store = build_store(config.storage, trigger_registry, factory_registry)
    resolver = ActionResolver(trigger_registry, store)
    dispatcher = TriggerDispatcher(resolver)

    logger.info(
        '✓ Bindings ready: %d trigger(s), %d factory(ies), store=%s',
        len(trigger_registry), len(factory_registry), type(store).__name__,
    )
    return BindingServices(
        config=config,
        trigger_registry=trigger_registry,
        factory_registry=factory_registry,
        store=store,
        resolver=resolver,
        dispatcher=dispatcher,
    )
