import logging
from typing import Dict, Iterable, List, Optional

from embeddable_actions.core.exceptions import DuplicateIdError, UnknownFactoryError
from embeddable_actions.domain.actions import ActionFactory

logger = logging.getLogger(__name__)


class ActionFactoryRegistry:
    """
    Closed registry of pluggable action types, keyed by factory id.

    Each concrete action type registers one factory at startup; the registry
    is read-only afterwards.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, ActionFactory] = {}
        logger.info("ActionFactoryRegistry initialized")

    def register(self, factory: ActionFactory) -> ActionFactory:
        if not isinstance(factory, ActionFactory):
            raise TypeError(f"factory must be an ActionFactory instance, got {type(factory)}")
        factory_id = getattr(factory, "id", None)
        if not factory_id:
            raise TypeError(f"{type(factory).__name__} does not define a factory id")
        if factory_id in self._factories:
            raise DuplicateIdError("ActionFactoryRegistry", factory_id)

        self._factories[factory_id] = factory
        logger.info(
            "Registered action factory '%s' (%s, singleton=%s)",
            factory_id, type(factory).__name__, factory.is_singleton(),
        )
        return factory

    def get_factories(self) -> Dict[str, ActionFactory]:
        return dict(self._factories)

    def get_factory_by_id(self, factory_id: str) -> ActionFactory:
        try:
            return self._factories[factory_id]
        except KeyError:
            raise UnknownFactoryError(factory_id, available=list(self._factories)) from None

    def has_factory(self, factory_id: str) -> bool:
        return factory_id in self._factories

    def get_creatable_factories(self, allowed_ids: Optional[Iterable[str]] = None) -> List[ActionFactory]:
        """
        Factories offered by a "create new action" affordance for one subject.

        Singletons are configured once elsewhere and never offered here. When
        ``allowed_ids`` is given only those factory ids are kept.
        """
        allowed = set(allowed_ids) if allowed_ids is not None else None
        return [
            factory for factory_id, factory in self._factories.items()
            if not factory.is_singleton() and (allowed is None or factory_id in allowed)
        ]

    def __contains__(self, factory_id: str) -> bool:
        return self.has_factory(factory_id)

    def __len__(self) -> int:
        return len(self._factories)
