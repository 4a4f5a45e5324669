"""Action and action-factory contracts.

Concrete action types subclass :class:`Action` (a pydantic model, so the
persisted record and the live instance share one schema) and ship a matching
:class:`ActionFactory` that registers itself with the
:class:`~embeddable_actions.core.registry.ActionFactoryRegistry` at startup.

Example
-------
>>> class NavigateAction(Action):
...     url: str = ''
...     async def execute(self, context): ...
>>> class NavigateActionFactory(ActionFactory):
...     id = 'navigate'
...     title = 'Navigate to URL'
...     action_class = NavigateAction
...     async def create_new(self):
...         return NavigateAction(action_type=self.id, title='Open docs')
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from embeddable_actions.core.exceptions import FactoryCreationError
from .models import ActionContext, BindingScope

__all__ = ['Action', 'ActionFactory', 'CreationResult', 'request_new_action']
logger = logging.getLogger(__name__)


class Action(BaseModel):
    """
    Persisted action record and its behaviour.

    The base class is concrete: factories without a dedicated subclass
    rehydrate saved records as plain ``Action`` instances, which list and
    bind like any other action. Executing one raises ``NotImplementedError``,
    recorded by the dispatcher as a failed action.
    """
    id: Optional[str] = Field(None, description='Assigned by the binding store on first save.')
    action_type: str = Field(..., description='Id of the factory that produced this action.')
    title: str = ''
    embeddable_id: Optional[str] = None
    embeddable_type: Optional[str] = None
    configuration: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(validate_assignment=True)

    @property
    def scope(self) -> Optional[BindingScope]:
        if self.embeddable_id and self.embeddable_type:
            return BindingScope(embeddable_id=self.embeddable_id, embeddable_type=self.embeddable_type)
        return None

    def allow_editing(self) -> bool:
        return True

    async def is_compatible(self, context: ActionContext) -> bool:
        return True

    async def execute(self, context: ActionContext) -> Any:
        raise NotImplementedError(f'{type(self).__name__} does not implement execute()')

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')


class ActionFactory(ABC):
    """Builds fresh actions of one type and rehydrates saved ones."""

    id: ClassVar[str]
    title: ClassVar[str] = ''
    action_class: ClassVar[Type[Action]] = Action

    def is_singleton(self) -> bool:
        return False

    def allows_multiple_triggers(self) -> bool:
        return True

    @abstractmethod
    async def create_new(self) -> Optional[Action]:
        """Return a new unsaved action, or ``None`` when the user abandons creation."""
        ...

    def from_saved_object(self, record: Mapping[str, Any]) -> Action:
        return self.action_class.model_validate(dict(record))

    def __repr__(self) -> str:
        return f'{type(self).__name__}(id={self.id!r})'


@dataclass(frozen=True)
class CreationResult:
    factory_id: str
    action: Optional[Action] = None

    @property
    def abandoned(self) -> bool:
        return self.action is None


async def request_new_action(factory: ActionFactory, *, timeout: Optional[float] = None) -> CreationResult:
    """Run ``factory.create_new()`` as a request and wrap the outcome.

    A ``None`` result is a normal, abandoned creation. Exceptions and timeouts
    are re-raised as :class:`FactoryCreationError`.
    """
    try:
        if timeout is not None:
            action = await asyncio.wait_for(factory.create_new(), timeout=timeout)
        else:
            action = await factory.create_new()
    except asyncio.TimeoutError as exc:
        logger.warning("Factory '%s' did not produce an action within %.1fs", factory.id, timeout)
        raise FactoryCreationError(factory.id, exc) from exc
    except Exception as exc:
        logger.exception("Factory '%s' failed in create_new(): %s", factory.id, exc)
        raise FactoryCreationError(factory.id, exc) from exc

    if action is None:
        logger.info("Creation via factory '%s' abandoned", factory.id)
        return CreationResult(factory_id=factory.id)

    if not isinstance(action, Action):
        raise FactoryCreationError(factory.id, TypeError(f'create_new() returned {type(action).__name__}, expected Action'))
    if action.action_type != factory.id:
        logger.debug("Factory '%s' returned action_type '%s'; stamping factory id", factory.id, action.action_type)
        action.action_type = factory.id
    return CreationResult(factory_id=factory.id, action=action)
