"""Resolution and dispatch of trigger bindings.

`ActionResolver` answers "which actions are bound to this trigger for this
subject"; `TriggerDispatcher` runs them when the trigger fires.

Example
-------
>>> from embeddable_actions.reactor import ActionResolver, TriggerDispatcher
"""
from __future__ import annotations

from .engine import DispatchReport, TriggerDispatcher
from .resolution import ActionResolver, ResolutionReport

__all__ = ["ActionResolver", "DispatchReport", "ResolutionReport", "TriggerDispatcher"]
