# embeddable_actions/domain/ports/binding_store_port.py
"""
Domain-layer interface for binding persistence.

The resolver and the editor flow depend on this port only; the in-memory and
SQLite stores under ``infrastructure.persistence`` both satisfy it.

Contract highlights
-------------------
* ``delete`` removes the action and every binding that references it
  atomically, or raises ``DeletionFailedError`` with prior state intact.
* ``add_mapping`` / ``remove_mapping`` are idempotent.
* Reads never mutate shared state and return copies.
"""

from __future__ import annotations

import typing as _t
from typing import List, Optional, Protocol, runtime_checkable

if _t.TYPE_CHECKING:  # pragma: no cover
    from embeddable_actions.domain.actions import Action
    from embeddable_actions.domain.models import Binding, BindingScope


@runtime_checkable
class BindingStorePort(Protocol):

    async def save(self, action: "Action") -> "Action":
        """Create (id assigned) or update an action; returns the stored copy."""
        ...

    async def get_action(self, action_id: str) -> "Action":
        ...

    async def list_actions(self) -> List["Action"]:
        ...

    async def delete(self, action_id: str) -> None:
        ...

    async def add_mapping(
        self,
        trigger_id: str,
        action_id: str,
        scope: Optional["BindingScope"] = None,
    ) -> "Binding":
        ...

    async def remove_mapping(
        self,
        trigger_id: str,
        action_id: str,
        scope: Optional["BindingScope"] = None,
    ) -> None:
        ...

    async def get_bindings(self, trigger_id: str, scope: Optional["BindingScope"]) -> List["Binding"]:
        """Bindings for one trigger in one scope, in insertion order."""
        ...

    async def get_bindings_for_action(self, action_id: str) -> List["Binding"]:
        ...
