from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from embeddable_actions.domain.models import ActionContext

from .resolution import ActionResolver

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    trigger_id: str
    executed: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)
    results: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class TriggerDispatcher:
    """Runs the actions bound to a trigger when a subject raises it.

    Actions execute sequentially in resolution order. One failing action is
    logged and recorded; the remaining actions still run.
    """

    def __init__(self, resolver: ActionResolver) -> None:
        self.resolver = resolver
        logger.info('TriggerDispatcher ready')

    async def fire(self, trigger_id: str, context: ActionContext) -> DispatchReport:
        actions = await self.resolver.get_actions_for_trigger(trigger_id, context)
        report = DispatchReport(trigger_id=trigger_id)
        if not actions:
            logger.debug("Trigger '%s' fired with no bound actions", trigger_id)
            return report

        logger.info("Trigger '%s' fired: executing %d action(s)", trigger_id, len(actions))
        for action in actions:
            try:
                report.results[action.id] = await action.execute(context)
                report.executed.append(action.id)
            except Exception as exc:
                logger.exception("Action '%s' (%s) failed on trigger '%s': %s", action.id, action.action_type, trigger_id, exc)
                report.failed[action.id] = exc
        return report
