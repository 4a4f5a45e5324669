from .action_factory_registry import ActionFactoryRegistry
from .trigger_registry import TriggerRegistry

__all__ = ['ActionFactoryRegistry', 'TriggerRegistry']
