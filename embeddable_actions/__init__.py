# embeddable_actions/__init__.py
from __future__ import annotations

__all__: list[str] = ["core", "domain", "infrastructure", "reactor", "editor", "configs", "bootstrap"]
__version__: str = "0.1.0"
