import logging
from typing import Dict, Iterator, List

from embeddable_actions.core.exceptions import DuplicateIdError, UnknownTriggerError
from embeddable_actions.domain.models import Trigger

logger = logging.getLogger(__name__)


class TriggerRegistry:
    """
    Catalogue of the trigger kinds subject objects can raise.

    Triggers are registered once while plugins load and are never removed;
    they are structural to the hosting application.
    """

    def __init__(self) -> None:
        self._triggers: Dict[str, Trigger] = {}
        logger.info("TriggerRegistry initialized")

    def register(self, trigger: Trigger) -> Trigger:
        if not isinstance(trigger, Trigger):
            raise TypeError(f"trigger must be a Trigger instance, got {type(trigger)}")
        if trigger.id in self._triggers:
            raise DuplicateIdError("TriggerRegistry", trigger.id)

        self._triggers[trigger.id] = trigger
        logger.info("Registered trigger '%s' (%s)", trigger.id, trigger.title)
        return trigger

    def get_triggers(self) -> List[Trigger]:
        """
        All registered triggers in registration order.
        """
        return list(self._triggers.values())

    def get_trigger(self, trigger_id: str) -> Trigger:
        try:
            return self._triggers[trigger_id]
        except KeyError:
            raise UnknownTriggerError(trigger_id, available=list(self._triggers)) from None

    def has_trigger(self, trigger_id: str) -> bool:
        return trigger_id in self._triggers

    def __contains__(self, trigger_id: str) -> bool:
        return self.has_trigger(trigger_id)

    def __iter__(self) -> Iterator[Trigger]:
        return iter(self.get_triggers())

    def __len__(self) -> int:
        return len(self._triggers)
