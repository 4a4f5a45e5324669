from .config_loader import CONFIG_FILENAME, DEFAULT_CONFIG, ConfigLoader
from .schema import BindingsConfig, CatalogConfig, EditorConfig, LoggingConfig, StorageConfig

__all__ = [
    'BindingsConfig',
    'CatalogConfig',
    'CONFIG_FILENAME',
    'ConfigLoader',
    'DEFAULT_CONFIG',
    'EditorConfig',
    'LoggingConfig',
    'StorageConfig',
]
