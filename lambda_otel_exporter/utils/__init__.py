from __future__ import annotations

from .console import ExtensionConsole, console

__all__ = [
    "ExtensionConsole",
    "console",
]
