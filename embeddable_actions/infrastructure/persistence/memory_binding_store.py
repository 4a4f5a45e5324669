# embeddable_actions/infrastructure/persistence/memory_binding_store.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from embeddable_actions.core.exceptions import DeletionFailedError, UnknownActionError
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import Action
from embeddable_actions.domain.models import Binding, BindingScope

from .store_support import BindingStoreSupport

logger = logging.getLogger(__name__)


class InMemoryBindingStore(BindingStoreSupport):
    """Process-local binding store.

    Actions are stored as deep copies so callers never alias stored state.
    Mutations are serialised by an ``asyncio.Lock``; reads take no lock.
    """

    def __init__(self, trigger_registry: TriggerRegistry, factory_registry: ActionFactoryRegistry) -> None:
        super().__init__(trigger_registry, factory_registry)
        self._actions: Dict[str, Action] = {}
        self._bindings: List[Binding] = []
        self._seq = 0
        self._lock = asyncio.Lock()
        logger.info('InMemoryBindingStore initialized')

    # ------------------------------------------------------------------ #
    async def save(self, action: Action) -> Action:
        self._validate_for_save(action)
        async with self._lock:
            stored = action.model_copy(deep=True)
            if not stored.id:
                stored.id = self._new_action_id()
            created = stored.id not in self._actions
            self._actions[stored.id] = stored
        logger.info("%s action '%s' (%s)", 'Created' if created else 'Updated', stored.id, stored.action_type)
        return stored.model_copy(deep=True)

    async def get_action(self, action_id: str) -> Action:
        action = self._actions.get(action_id)
        if action is None:
            raise UnknownActionError(action_id)
        return action.model_copy(deep=True)

    async def list_actions(self) -> List[Action]:
        return [a.model_copy(deep=True) for a in self._actions.values()]

    async def delete(self, action_id: str) -> None:
        async with self._lock:
            if action_id not in self._actions:
                raise UnknownActionError(action_id)

            actions_before = dict(self._actions)
            bindings_before = list(self._bindings)
            try:
                removed = self._drop_bindings_for(action_id)
                self._drop_action(action_id)
            except Exception as exc:
                self._actions = actions_before
                self._bindings = bindings_before
                logger.exception("Deletion of action '%s' failed, state restored: %s", action_id, exc)
                raise DeletionFailedError(action_id, exc) from exc
        logger.info("Deleted action '%s' and %d binding(s)", action_id, removed)

    # ------------------------------------------------------------------ #
    async def add_mapping(self, trigger_id: str, action_id: str, scope: Optional[BindingScope] = None) -> Binding:
        self._require_trigger(trigger_id)
        async with self._lock:
            action = self._actions.get(action_id)
            if action is None:
                raise UnknownActionError(action_id)
            scope = self._effective_scope(action, scope)

            for existing in self._bindings:
                if existing.same_mapping(trigger_id, action_id, scope):
                    logger.debug("Mapping %s -> %s [%s] already present", trigger_id, action_id, scope)
                    return existing

            self._check_trigger_cardinality(
                action, trigger_id, (b.trigger_id for b in self._bindings if b.action_id == action_id)
            )
            self._seq += 1
            binding = Binding(trigger_id=trigger_id, action_id=action_id, scope=scope, seq=self._seq)
            self._bindings.append(binding)
        logger.info("Mapped trigger '%s' -> action '%s' [%s]", trigger_id, action_id, scope or 'global')
        return binding

    async def remove_mapping(self, trigger_id: str, action_id: str, scope: Optional[BindingScope] = None) -> None:
        async with self._lock:
            kept = [
                b for b in self._bindings
                if not (b.trigger_id == trigger_id and b.action_id == action_id and (scope is None or b.scope == scope))
            ]
            removed = len(self._bindings) - len(kept)
            self._bindings = kept
        if removed:
            logger.info("Removed %d mapping(s) %s -> %s", removed, trigger_id, action_id)
        else:
            logger.debug("No mapping %s -> %s to remove", trigger_id, action_id)

    async def get_bindings(self, trigger_id: str, scope: Optional[BindingScope]) -> List[Binding]:
        return [b for b in self._bindings if b.trigger_id == trigger_id and b.scope == scope]

    async def get_bindings_for_action(self, action_id: str) -> List[Binding]:
        return [b for b in self._bindings if b.action_id == action_id]

    # ------------------------------------------------------------------ #
    def _drop_bindings_for(self, action_id: str) -> int:
        before = len(self._bindings)
        self._bindings = [b for b in self._bindings if b.action_id != action_id]
        return before - len(self._bindings)

    def _drop_action(self, action_id: str) -> None:
        del self._actions[action_id]
