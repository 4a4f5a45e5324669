# embeddable_actions/editor/event_editor.py
"""Headless binding editor for one subject object.

The editor lists the events (trigger/action pairs) bound to its embeddable,
creates actions through a chosen factory, hands a single action to an
external detail editor, and deletes actions together with their bindings.
Rendering is left to the caller, who may pass ``on_change`` to be told when
the visible state moved.

States::

    LISTING --request_create/create_action--> CREATING
    CREATING --action returned--> EDITING
    CREATING --abandoned / cancel_create--> LISTING
    LISTING --begin_edit--> EDITING
    EDITING --complete_edit (re-resolves)--> LISTING
    LISTING --delete_action (re-resolves)--> LISTING
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from embeddable_actions.core.exceptions import (
    BindingError,
    EditorStateError,
    TriggerResolutionError,
    UnknownActionError,
    UnknownFactoryError,
    ValidationError,
)
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import Action, request_new_action
from embeddable_actions.domain.models import ActionContext, EventRow, Trigger
from embeddable_actions.domain.ports.binding_store_port import BindingStorePort
from embeddable_actions.reactor.resolution import ActionResolver, ResolutionReport

__all__ = ['EditorState', 'EventEditor']
logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    LISTING = 'listing'
    CREATING = 'creating'
    EDITING = 'editing'


class EventEditor:

    def __init__(
        self,
        embeddable: Any,
        *,
        trigger_registry: TriggerRegistry,
        factory_registry: ActionFactoryRegistry,
        store: BindingStorePort,
        resolver: ActionResolver,
        action_types: Optional[Sequence[str]] = None,
        hide_trigger_ids: Optional[Iterable[str]] = None,
        create_timeout_s: Optional[float] = None,
        on_change: Optional[Callable[['EventEditor'], None]] = None,
    ) -> None:
        self.embeddable = embeddable
        self.context = ActionContext.for_embeddable(embeddable)
        self.trigger_registry = trigger_registry
        self.factory_registry = factory_registry
        self.store = store
        self.resolver = resolver
        self.action_types: Optional[List[str]] = list(action_types) if action_types is not None else None
        self.hide_trigger_ids = set(hide_trigger_ids or ())
        self.create_timeout_s = create_timeout_s
        self._on_change = on_change

        self.state = EditorState.LISTING
        self.events: List[EventRow] = []
        self.trigger_mapping: Dict[str, List[Action]] = {}
        self.trigger_errors: Dict[str, TriggerResolutionError] = {}
        self.edit_action: Optional[Action] = None
        self.error: Optional[BindingError] = None

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #
    def visible_triggers(self) -> List[Trigger]:
        return [t for t in self.trigger_registry.get_triggers() if t.id not in self.hide_trigger_ids]

    async def refresh_events(self) -> ResolutionReport:
        """Re-resolve every visible trigger; the view changes only once all have settled."""
        report = await self.resolver.resolve_events(self.visible_triggers(), self.context)
        self.events = report.events
        self.trigger_mapping = report.actions_by_trigger
        self.trigger_errors = report.errors
        self._notify()
        return report

    def find_action(self, action_id: str) -> Optional[Action]:
        for actions in self.trigger_mapping.values():
            for action in actions:
                if action.id == action_id:
                    return action
        return None

    def get_action_factory_options(self) -> List[Dict[str, str]]:
        return [
            {'value': factory.id, 'text': factory.title}
            for factory in self.factory_registry.get_creatable_factories(self.action_types)
        ]

    # ------------------------------------------------------------------ #
    # Creating
    # ------------------------------------------------------------------ #
    async def request_create(self) -> Optional[Action]:
        """Open the creation step; a single allowed action type skips the choice."""
        self._require_state('request_create', EditorState.LISTING)
        self.error = None
        if self.action_types is not None and len(self.action_types) == 1:
            return await self.create_action(self.action_types[0])
        self._set_state(EditorState.CREATING)
        return None

    async def create_action(self, factory_id: str) -> Optional[Action]:
        self._require_state('create_action', EditorState.LISTING, EditorState.CREATING)
        self._set_state(EditorState.CREATING)

        offered = {f.id for f in self.factory_registry.get_creatable_factories(self.action_types)}
        try:
            factory = self.factory_registry.get_factory_by_id(factory_id)
            if factory_id not in offered:
                raise UnknownFactoryError(factory_id, available=sorted(offered))
            result = await request_new_action(factory, timeout=self.create_timeout_s)
        except BindingError as exc:
            self._fail(exc)
            return None

        if result.abandoned:
            logger.info("Creation via '%s' abandoned; back to listing", factory_id)
            self._set_state(EditorState.LISTING)
            return None

        action = result.action
        if self.embeddable is not None:
            action.embeddable_id = str(self.embeddable.id)
            action.embeddable_type = str(self.embeddable.type)
        self.edit_action = action
        self.error = None
        self._set_state(EditorState.EDITING)
        return action

    def cancel_create(self) -> None:
        self._require_state('cancel_create', EditorState.CREATING)
        self.error = None
        self._set_state(EditorState.LISTING)

    # ------------------------------------------------------------------ #
    # Editing
    # ------------------------------------------------------------------ #
    def begin_edit(self, action_id: str) -> Optional[Action]:
        self._require_state('begin_edit', EditorState.LISTING)
        action = self.find_action(action_id)
        if action is None:
            self._fail(UnknownActionError(action_id))
            return None
        if not action.allow_editing():
            self._fail(ValidationError(f"Action '{action_id}' does not allow editing", action_id=action_id))
            return None
        self.edit_action = action.model_copy(deep=True)
        self.error = None
        self._set_state(EditorState.EDITING)
        return self.edit_action

    async def save_action(self, trigger_ids: Iterable[str] = ()) -> Optional[Action]:
        """Persist the action under edit and bind it to ``trigger_ids``."""
        self._require_state('save_action', EditorState.EDITING)
        if self.edit_action is None:
            raise EditorStateError('save_action', f'{self.state.value} (no action under edit)')
        try:
            saved = await self.store.save(self.edit_action)
            self.edit_action = saved
            for trigger_id in trigger_ids:
                await self.store.add_mapping(trigger_id, saved.id)
        except BindingError as exc:
            self._fail(exc)
            return None
        self.error = None
        self._notify()
        return saved

    async def complete_edit(self) -> None:
        self._require_state('complete_edit', EditorState.EDITING)
        await self.refresh_events()
        self.edit_action = None
        self._set_state(EditorState.LISTING)

    # ------------------------------------------------------------------ #
    # Deleting
    # ------------------------------------------------------------------ #
    async def delete_action(self, action_id: str) -> bool:
        self._require_state('delete_action', EditorState.LISTING)
        try:
            await self.store.delete(action_id)
        except BindingError as exc:
            self._fail(exc)
            return False
        self.error = None
        await self.refresh_events()
        return True

    def dismiss_error(self) -> None:
        self.error = None
        self._notify()

    # ------------------------------------------------------------------ #
    def _require_state(self, operation: str, *allowed: EditorState) -> None:
        if self.state not in allowed:
            raise EditorStateError(operation, self.state.value)

    def _set_state(self, state: EditorState) -> None:
        if state is not self.state:
            logger.debug('EventEditor %s -> %s', self.state.value, state.value)
        self.state = state
        self._notify()

    def _fail(self, exc: BindingError) -> None:
        logger.warning('EventEditor [%s]: %s', self.state.value, exc)
        self.error = exc
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
