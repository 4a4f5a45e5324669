# embeddable_actions/infrastructure/persistence/store_support.py
"""Validation shared by every binding store implementation."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import shortuuid

from embeddable_actions.core.exceptions import ValidationError
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import Action
from embeddable_actions.domain.models import BindingScope

logger = logging.getLogger(__name__)


class BindingStoreSupport:

    def __init__(self, trigger_registry: TriggerRegistry, factory_registry: ActionFactoryRegistry) -> None:
        self.trigger_registry = trigger_registry
        self.factory_registry = factory_registry

    @staticmethod
    def _new_action_id() -> str:
        return f'act_{shortuuid.uuid()}'

    def _validate_for_save(self, action: Action) -> None:
        if not isinstance(action, Action):
            raise TypeError(f'Expected an Action, got {type(action).__name__}')
        errors: List[str] = []
        if not action.title or not action.title.strip():
            errors.append('title must not be empty')
        if not self.factory_registry.has_factory(action.action_type):
            errors.append(f"factory '{action.action_type}' is not registered")
        if bool(action.embeddable_id) != bool(action.embeddable_type):
            errors.append('embeddable_id and embeddable_type must be set together')
        if errors:
            logger.debug('Rejected save of action %s: %s', action.id, errors)
            raise ValidationError('Action failed validation', validation_errors=errors, action_id=action.id)

    def _require_trigger(self, trigger_id: str) -> None:
        # raises UnknownTriggerError
        self.trigger_registry.get_trigger(trigger_id)

    def _check_trigger_cardinality(self, action: Action, trigger_id: str, bound_trigger_ids: Iterable[str]) -> None:
        if not self.factory_registry.has_factory(action.action_type):
            return
        factory = self.factory_registry.get_factory_by_id(action.action_type)
        if factory.allows_multiple_triggers():
            return
        others = sorted({tid for tid in bound_trigger_ids if tid != trigger_id})
        if others:
            raise ValidationError(
                f"Action type '{action.action_type}' may be bound to a single trigger",
                validation_errors=[f"already bound to trigger(s): {', '.join(others)}"],
                action_id=action.id,
            )

    @staticmethod
    def _effective_scope(action: Action, scope: Optional[BindingScope]) -> Optional[BindingScope]:
        return scope if scope is not None else action.scope
