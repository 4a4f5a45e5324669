from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from embeddable_actions.core.exceptions import TriggerResolutionError, UnknownActionError
from embeddable_actions.core.registry import TriggerRegistry
from embeddable_actions.domain.actions import Action
from embeddable_actions.domain.models import ActionContext, Binding, BindingScope, EventRow, Trigger
from embeddable_actions.domain.ports.binding_store_port import BindingStorePort

logger = logging.getLogger(__name__)


def scopes_for(context: ActionContext) -> Iterator[BindingScope]:
    """Scopes consulted for a context, in precedence order."""
    subject_scope = context.subject_scope
    container_scope = context.container_scope
    if subject_scope is not None:
        yield subject_scope
    if container_scope is not None and container_scope != subject_scope:
        yield container_scope


@dataclass
class ResolutionReport:
    """Aggregate of one fan-out; only built once every trigger has settled."""
    events: List[EventRow] = field(default_factory=list)
    actions_by_trigger: Dict[str, List[Action]] = field(default_factory=dict)
    errors: Dict[str, TriggerResolutionError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def find_action(self, action_id: str) -> Optional[Action]:
        for actions in self.actions_by_trigger.values():
            for action in actions:
                if action.id == action_id:
                    return action
        return None


class ActionResolver:
    """Resolves the actions bound to a trigger for one subject.

    Subject-scoped bindings come first, then bindings of the containing
    context, each in binding insertion order. An action reachable through
    both scopes is kept once, at its subject-scoped position. Resolution is a
    pure read and holds no lock, so many triggers can resolve concurrently.
    """

    def __init__(self, trigger_registry: TriggerRegistry, store: BindingStorePort) -> None:
        self.trigger_registry = trigger_registry
        self.store = store

    async def get_actions_for_trigger(self, trigger_id: str, context: ActionContext) -> List[Action]:
        # raises UnknownTriggerError
        self.trigger_registry.get_trigger(trigger_id)

        bindings: List[Binding] = []
        for scope in scopes_for(context):
            bindings.extend(await self.store.get_bindings(trigger_id, scope))

        candidates: List[Action] = []
        seen: set[str] = set()
        for binding in bindings:
            if binding.action_id in seen:
                logger.debug("Action '%s' already resolved at subject scope; skipping %s binding", binding.action_id, binding.scope)
                continue
            seen.add(binding.action_id)
            try:
                candidates.append(await self.store.get_action(binding.action_id))
            except UnknownActionError:
                logger.warning("Binding %s -> %s references a missing action; ignored", trigger_id, binding.action_id)

        checks = await asyncio.gather(*(self._is_compatible(a, context) for a in candidates))
        resolved = [a for a, ok in zip(candidates, checks) if ok]
        logger.debug(
            "Trigger '%s' resolved %d action(s) for %s (container=%s), %d filtered as incompatible",
            trigger_id, len(resolved), context.subject_scope, context.container_scope, len(candidates) - len(resolved),
        )
        return resolved

    async def resolve_events(self, triggers: Sequence[Trigger], context: ActionContext) -> ResolutionReport:
        """Fan out one resolution per trigger and join once all settle."""
        results = await asyncio.gather(
            *(self.get_actions_for_trigger(t.id, context) for t in triggers),
            return_exceptions=True,
        )

        report = ResolutionReport()
        for trigger, result in zip(triggers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Resolution for trigger '%s' failed: %s", trigger.id, result)
                report.errors[trigger.id] = TriggerResolutionError(trigger.id, result)
                continue
            report.actions_by_trigger[trigger.id] = result
            report.events.extend(
                EventRow(action_id=a.id, trigger_id=trigger.id, trigger_title=trigger.title, action_title=a.title)
                for a in result
            )
        logger.info(
            'Resolved %d trigger(s): %d event(s), %d failure(s)',
            len(triggers), len(report.events), len(report.errors),
        )
        return report

    async def _is_compatible(self, action: Action, context: ActionContext) -> bool:
        try:
            return bool(await action.is_compatible(context))
        except Exception as exc:
            logger.exception("Compatibility check of action '%s' raised; treating as incompatible: %s", action.id, exc)
            return False
