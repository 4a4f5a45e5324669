"""
Exception classes for the trigger/action binding subsystem.

Every error raised by the registries, the binding stores, the resolver and
the editor flow derives from :class:`BindingError`, so the editor boundary can
catch one type and surface it as a banner.  Only :class:`DuplicateIdError` is
meant to be fatal: it is raised while plugins register at load time.
"""

from typing import Any, Dict, List, Optional


class BindingError(Exception):
    """
    Base exception for all binding-related errors.

    Carries an optional ``details`` mapping that is rendered after the
    message, e.g. ``Unknown trigger 'hover' (trigger_id=hover)``.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.details:
            context_parts = [f"{key}={value}" for key, value in self.details.items() if value is not None]
            if context_parts:
                return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class DuplicateIdError(BindingError):
    """Raised when a trigger or factory id is registered twice."""

    def __init__(self, registry: str, item_id: str):
        super().__init__(f"Duplicate id '{item_id}' in {registry}", details={"registry": registry, "id": item_id})
        self.registry = registry
        self.item_id = item_id


class _UnknownIdError(BindingError, LookupError):
    kind = "item"

    def __init__(self, item_id: str, available: Optional[List[str]] = None):
        details: Dict[str, Any] = {f"{self.kind}_id": item_id}
        if available is not None:
            shown = list(available)
            if len(shown) > 20:
                shown = shown[:20] + [f"... and {len(available) - 20} more"]
            details["available"] = shown
        super().__init__(f"Unknown {self.kind} '{item_id}'", details=details)
        self.item_id = item_id
        self.available = list(available or [])


class UnknownFactoryError(_UnknownIdError):
    """Raised when an action factory id is not registered."""
    kind = "factory"


class UnknownTriggerError(_UnknownIdError):
    """Raised when a trigger id is not registered."""
    kind = "trigger"


class UnknownActionError(_UnknownIdError):
    """Raised when an action id is not present in the binding store."""
    kind = "action"


class ValidationError(BindingError):
    """
    Raised when an action cannot be saved or bound.

    The individual problems are kept in ``validation_errors`` so an editor
    can list them next to the form.
    """

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None, action_id: Optional[str] = None):
        super().__init__(message, details={"action_id": action_id})
        self.validation_errors = list(validation_errors or [])
        self.action_id = action_id

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.validation_errors:
            error_list = "\n  - ".join(self.validation_errors)
            return f"{base_msg}\nValidation errors:\n  - {error_list}"
        return base_msg


class DeletionFailedError(BindingError):
    """Raised when deleting an action and its bindings could not complete; prior state is restored."""

    def __init__(self, action_id: str, cause: Optional[BaseException] = None):
        super().__init__(f"Deletion of action '{action_id}' failed and was rolled back", details={"action_id": action_id}, cause=cause)
        self.action_id = action_id


class PersistenceError(BindingError):
    """Raised when the backing storage fails during a store operation other than delete."""

    def __init__(self, operation: str, action_id: Optional[str] = None, cause: Optional[BaseException] = None):
        reason = f": {cause}" if cause is not None and str(cause) else ""
        super().__init__(
            f"Binding store operation '{operation}' failed{reason}",
            details={"operation": operation, "action_id": action_id},
            cause=cause,
        )
        self.operation = operation
        self.action_id = action_id


class FactoryCreationError(BindingError):
    """Raised when a factory's ``create_new()`` fails or times out."""

    def __init__(self, factory_id: str, cause: Optional[BaseException] = None):
        reason = f": {cause}" if cause is not None and str(cause) else ""
        super().__init__(f"Factory '{factory_id}' could not create an action{reason}", details={"factory_id": factory_id}, cause=cause)
        self.factory_id = factory_id


class TriggerResolutionError(BindingError):
    """Per-trigger resolution failure; never aborts sibling triggers."""

    def __init__(self, trigger_id: str, cause: Optional[BaseException] = None):
        super().__init__(f"Resolution failed for trigger '{trigger_id}': {cause}", details={"trigger_id": trigger_id}, cause=cause)
        self.trigger_id = trigger_id


class EditorStateError(BindingError):
    """Raised when an editor operation is invoked from a state that does not allow it."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Operation '{operation}' not allowed in state '{state}'", details={"operation": operation, "state": state})
        self.operation = operation
        self.state = state


class CatalogLoadError(BindingError):
    """Raised when a trigger catalogue or factory import path cannot be loaded."""
    pass


class ConfigError(BindingError):
    """Raised when the bindings configuration does not validate."""
    pass
