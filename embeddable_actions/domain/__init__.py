"""Domain types for trigger/action bindings.

Import side effects are avoided; only the public models are re-exported.
"""
from __future__ import annotations

from .actions import Action, ActionFactory, CreationResult, request_new_action
from .models import ActionContext, Binding, BindingScope, EmbeddableRef, EventRow, Trigger

__all__ = [
    'Action',
    'ActionContext',
    'ActionFactory',
    'Binding',
    'BindingScope',
    'CreationResult',
    'EmbeddableRef',
    'EventRow',
    'Trigger',
    'request_new_action',
]
