"""Lambda extensions API client and lifecycle loop."""

from __future__ import annotations

from .client import ExtensionClient
from .coordinator import CoordinatorState, LifecycleCoordinator
from .models import EventType, NextEventResponse, RegisterResponse, Tracing

__all__ = [
    "CoordinatorState",
    "EventType",
    "ExtensionClient",
    "LifecycleCoordinator",
    "NextEventResponse",
    "RegisterResponse",
    "Tracing",
]
