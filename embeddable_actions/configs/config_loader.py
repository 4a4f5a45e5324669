from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Final, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from embeddable_actions.core.exceptions import ConfigError

from .config_utils import ConfigMerger
from .schema import BindingsConfig

__all__: Sequence[str] = ('ConfigLoader', 'DEFAULT_CONFIG', 'CONFIG_FILENAME')
logger = logging.getLogger(__name__)

_ENV_DEFAULT: Final[str] = 'default'
CONFIG_FILENAME: Final[str] = 'bindings.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'env': _ENV_DEFAULT,
    'storage': {
        'backend': 'memory',
        'db_path': 'runtime/bindings.db',
    },
    'editor': {
        'action_types': None,
        'hide_trigger_ids': [],
        'create_timeout_s': None,
    },
    'catalog': {
        'trigger_files': [],
        'triggers': [],
        'factories': [],
    },
    'logging': {
        'level': 'INFO',
    },
}

_RE_ENV_DEFAULT: Final[re.Pattern[str]] = re.compile('\\$\\{([A-Za-z_][A-Za-z0-9_]*):-(.*?)\\}')


def _interpolate_env(value: str) -> str:
    def _repl(match: re.Match[str]) -> str:
        var, default = (match.group(1), match.group(2))
        return os.getenv(var, default)

    before = value
    value = _RE_ENV_DEFAULT.sub(_repl, value)
    value = os.path.expandvars(value)

    if before != value:
        logger.debug("Env expand: '%s' -> '%s'", before, value)
    elif '${' in before:
        logger.warning("Unresolved env var in '%s'", before)

    return value


def _expand_tree(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _expand_tree(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_expand_tree(v) for v in node]
    if isinstance(node, str):
        return _interpolate_env(node)
    return node


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding='utf-8')
    except FileNotFoundError:
        logger.debug('Config file not found: %s', path)
        return {}

    try:
        if path.suffix.lower() == '.json':
            data = json.loads(text) or {}
        else:
            data = yaml.safe_load(text) or {}
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f'Failed to parse {path}: {exc}', cause=exc) from exc

    if not isinstance(data, dict):
        logger.warning('%s does not contain a top-level mapping - ignored', path)
        return {}
    return data


class ConfigLoader:
    """Layered configuration: defaults, ``default/bindings.yaml``, ``<env>/bindings.yaml``."""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self._config_dir: Path = Path(config_dir) if config_dir is not None else Path(__file__).resolve().parent

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    async def load_config(self, env: Optional[str] = None, provided_config: Optional[Mapping[str, Any]] = None) -> BindingsConfig:
        if provided_config is not None:
            logger.info('Using provided bindings configuration object.')
            cfg = ConfigMerger.merge(copy.deepcopy(DEFAULT_CONFIG), dict(provided_config), 'provided_config')
            return self._validate(_expand_tree(cfg))

        env = env or _ENV_DEFAULT
        logger.info('Loading bindings configuration for env=%s', env)
        cfg: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        layers = [('DEFAULT_BINDINGS_CONFIG', self._config_dir / _ENV_DEFAULT / CONFIG_FILENAME)]
        if env != _ENV_DEFAULT:
            layers.append((f'ENV_BINDINGS_CONFIG ({env})', self._config_dir / env / CONFIG_FILENAME))

        for label, path in layers:
            data = _load_yaml(path)
            if data:
                cfg = ConfigMerger.merge(cfg, data, label)
                logger.info('Merged %s: %s', label, path)
            elif label.startswith('ENV_'):
                logger.warning('%s not found: %s', label, path)

        cfg['env'] = env
        config = self._validate(_expand_tree(cfg))
        logger.info("Bindings configuration loaded for env='%s' (storage=%s)", env, config.storage.backend)
        return config

    @staticmethod
    def _validate(cfg: Dict[str, Any]) -> BindingsConfig:
        try:
            return BindingsConfig.model_validate(cfg)
        except PydanticValidationError as exc:
            raise ConfigError(f'Invalid bindings configuration: {exc}', cause=exc) from exc
