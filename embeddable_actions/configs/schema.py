from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__: Sequence[str] = ('BindingsConfig', 'CatalogConfig', 'EditorConfig', 'LoggingConfig', 'StorageConfig')


class StorageConfig(BaseModel):
    backend: Literal['memory', 'sqlite'] = Field('memory', description='Binding store implementation.')
    db_path: str = Field('runtime/bindings.db', description='SQLite file, used when backend is sqlite.')
    enable_wal_mode: bool = True
    timeout: float = Field(30.0, gt=0)
    retry_attempts: int = Field(3, ge=1, le=10)
    retry_delay: float = Field(0.1, ge=0)
    pool_size: int = Field(5, ge=1, le=50)

    model_config = ConfigDict(extra='forbid')


class EditorConfig(BaseModel):
    action_types: Optional[List[str]] = Field(None, description='Allow-list of factory ids offered for creation (None = all non-singletons).')
    hide_trigger_ids: List[str] = Field(default_factory=list)
    create_timeout_s: Optional[float] = Field(None, gt=0, description='Optional upper bound on a factory create_new() call.')

    model_config = ConfigDict(extra='forbid')


class CatalogConfig(BaseModel):
    trigger_files: List[str] = Field(default_factory=list, description='YAML trigger catalogue files.')
    triggers: List[Dict[str, Any]] = Field(default_factory=list, description='Inline trigger definitions.')
    factories: List[str] = Field(default_factory=list, description="Factory import paths ('pkg.mod:Factory').")

    model_config = ConfigDict(extra='forbid')


class LoggingConfig(BaseModel):
    level: str = 'INFO'
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    @field_validator('level')
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {'CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG', 'NOTSET'}:
            raise ValueError(f'Unknown log level {v!r}')
        return level


class BindingsConfig(BaseModel):
    env: str = 'default'
    storage: StorageConfig = Field(default_factory=StorageConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra='forbid')
