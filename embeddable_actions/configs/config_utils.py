import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ConfigMerger:
    @staticmethod
    def merge(
        base: Dict[str, Any],
        override: Dict[str, Any],
        context_description: str = "ConfigMerge",
    ) -> Dict[str, Any]:
        """
        Merges an 'override' dictionary into a 'base' dictionary.
        - Dictionaries are merged recursively.
        - Other types (lists included) in override replace values in base.
        """
        if not isinstance(base, dict):
            logger.error(
                "[%s] Base for merge is not a dictionary (type: %s). Returning override if dict, else empty.",
                context_description, type(base),
            )
            return copy.deepcopy(override) if isinstance(override, dict) else {}

        if not isinstance(override, dict):
            logger.warning(
                "[%s] Override for merge is not a dictionary (type: %s). Returning base.",
                context_description, type(override),
            )
            return copy.deepcopy(base)

        merged = copy.deepcopy(base)
        for key, override_value in override.items():
            if key not in merged:
                merged[key] = copy.deepcopy(override_value)
                logger.debug("[%s] Added new key '%s'", context_description, key)
            elif isinstance(merged[key], dict) and isinstance(override_value, dict):
                merged[key] = ConfigMerger.merge(
                    merged[key],
                    override_value,
                    context_description=f"{context_description} -> {key}",
                )
            elif merged[key] != override_value:
                merged[key] = copy.deepcopy(override_value)
                logger.debug("[%s] Overridden key '%s'", context_description, key)

        return merged
