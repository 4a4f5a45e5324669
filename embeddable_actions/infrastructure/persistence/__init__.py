# embeddable_actions/infrastructure/persistence/__init__.py
# Binding store implementations; both satisfy BindingStorePort.

from .memory_binding_store import InMemoryBindingStore
from .sqlite_binding_store import SQLiteBindingStore

__all__ = ['InMemoryBindingStore', 'SQLiteBindingStore']
