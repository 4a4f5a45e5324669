from .bootstrap import BindingServices, bootstrap_bindings, build_store, configure_logging
from .catalog_loader import CatalogLoader, import_by_path

__all__ = [
    'BindingServices',
    'CatalogLoader',
    'bootstrap_bindings',
    'build_store',
    'configure_logging',
    'import_by_path',
]
