"""Lifecycle events for ardent models."""

from ardent.core.events.events import HookRegistry, LifecycleEvent, LifecyclePhase

__all__ = [
    "HookRegistry",
    "LifecycleEvent",
    "LifecyclePhase",
]
