# embeddable_actions/bootstrap/catalog_loader.py
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml
from pydantic import ValidationError as PydanticValidationError

from embeddable_actions.core.exceptions import CatalogLoadError
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import ActionFactory
from embeddable_actions.domain.models import Trigger

logger = logging.getLogger(__name__)

_SUPPORTED_VERSION = '1.0'


def import_by_path(path: str) -> Any:
    """Resolve ``'pkg.mod:Name'`` or ``'pkg.mod.Name'`` to the named attribute."""
    if not isinstance(path, str):
        raise TypeError(f'Import path must be a string, got {type(path)}')
    if ':' in path:
        module_name, attr_name = path.split(':', 1)
    elif '.' in path:
        module_name, attr_name = path.rsplit('.', 1)
    else:
        raise CatalogLoadError(f"Import path '{path}' is ambiguous. Use 'pkg.mod:Class' or 'pkg.mod.Class'.")

    if not module_name or not attr_name:
        raise CatalogLoadError(f'Invalid import path format: {path}')

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise CatalogLoadError(f"Could not import module '{module_name}' (from '{path}'): {e}", cause=e) from e
    try:
        return getattr(module, attr_name)
    except AttributeError as e:
        raise CatalogLoadError(f"Attribute '{attr_name}' not found in module '{module_name}'", cause=e) from e


class CatalogLoader:
    """Load trigger catalogues from YAML and action factories from import paths."""

    def __init__(self, trigger_registry: TriggerRegistry, factory_registry: ActionFactoryRegistry) -> None:
        self.trigger_registry = trigger_registry
        self.factory_registry = factory_registry

    # ------------------------------------------------------------------ #
    def load_trigger_file(self, filepath: Path) -> List[Trigger]:
        logger.info('Loading triggers from file: %s', filepath)
        try:
            data = yaml.safe_load(Path(filepath).read_text(encoding='utf-8'))
        except FileNotFoundError as exc:
            raise CatalogLoadError(f'Trigger catalogue not found: {filepath}', cause=exc) from exc
        except yaml.YAMLError as exc:
            raise CatalogLoadError(f'YAML error in {filepath}: {exc}', cause=exc) from exc

        if not data or 'triggers' not in data:
            logger.debug("No 'triggers' key in %s - skipped", filepath)
            return []
        if (ver := str(data.get('version', _SUPPORTED_VERSION))) != _SUPPORTED_VERSION:
            logger.warning("Unexpected version '%s' in %s", ver, Path(filepath).name)

        loaded = self.register_triggers(data['triggers'], source=str(filepath))
        logger.info('Loaded %d trigger(s) from %s: %s', len(loaded), Path(filepath).name, [t.id for t in loaded])
        return loaded

    def register_triggers(self, entries: Iterable[Mapping[str, Any]], *, source: str = 'inline') -> List[Trigger]:
        loaded: List[Trigger] = []
        for cfg in entries:
            if not isinstance(cfg, Mapping):
                raise CatalogLoadError(f'Trigger entry in {source} is not a mapping: {cfg!r}')
            if not cfg.get('enabled', True):
                logger.debug('Trigger %s disabled - skipping', cfg.get('id', 'unknown'))
                continue
            fields: Dict[str, Any] = {k: v for k, v in cfg.items() if k != 'enabled'}
            try:
                trigger = Trigger.model_validate(fields)
            except PydanticValidationError as exc:
                raise CatalogLoadError(f'Invalid trigger entry in {source}: {exc}', cause=exc) from exc
            # DuplicateIdError propagates: registration conflicts are fatal at load.
            loaded.append(self.trigger_registry.register(trigger))
        return loaded

    # ------------------------------------------------------------------ #
    def load_factories(self, paths: Iterable[str]) -> List[ActionFactory]:
        loaded: List[ActionFactory] = []
        for path in paths:
            target = import_by_path(path)
            if isinstance(target, type):
                if not issubclass(target, ActionFactory):
                    raise CatalogLoadError(f"'{path}' is not an ActionFactory subclass")
                factory = target()
            elif isinstance(target, ActionFactory):
                factory = target
            else:
                raise CatalogLoadError(f"'{path}' resolved to {type(target).__name__}, expected an ActionFactory")
            loaded.append(self.factory_registry.register(factory))
        if loaded:
            logger.info('Loaded %d action factory(ies): %s', len(loaded), [f.id for f in loaded])
        return loaded
