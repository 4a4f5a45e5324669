# embeddable_actions/core/__init__.py
from __future__ import annotations

__all__: list[str] = ["exceptions", "registry"]
