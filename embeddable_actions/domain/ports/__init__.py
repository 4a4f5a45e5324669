from .binding_store_port import BindingStorePort

__all__ = ['BindingStorePort']
