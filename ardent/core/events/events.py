"""Model lifecycle events.

This module provides the explicit lifecycle phases a model passes through
and the per-type hook registry that dispatches them. Callbacks are
registered by phase; nothing is discovered from method names.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)

Hook = Callable[[Any], Any]


class LifecyclePhase(str, Enum):
    """Named lifecycle phases, fired in a fixed order by the model."""

    VALIDATING = "validating"
    VALIDATED = "validated"
    SAVING = "saving"
    SAVED = "saved"
    CREATING = "creating"
    CREATED = "created"
    UPDATING = "updating"
    UPDATED = "updated"
    DELETING = "deleting"
    DELETED = "deleted"

    @property
    def halts(self) -> bool:
        """Whether a callback returning False aborts the operation."""
        return self.value.endswith("ing")


@dataclass
class LifecycleEvent:
    """Record of a fired phase, kept for introspection in tests and logs."""
    phase: LifecyclePhase
    model_name: str
    halted: bool = False
    callbacks: int = 0


@dataclass
class HookRegistry:
    """Per-type registry of lifecycle callbacks.

    Each model type owns one registry. Registries of subclasses inherit the
    callbacks of their parents at creation time and may add their own.
    """
    model_name: str
    _handlers: Dict[LifecyclePhase, List[Hook]] = field(default_factory=dict)

    def register_handler(self, phase: LifecyclePhase, handler: Hook) -> None:
        """Register a callback for a phase.

        Args:
            phase: Phase to handle
            handler: Callable receiving the model instance
        """
        phase = LifecyclePhase(phase)
        if phase not in self._handlers:
            self._handlers[phase] = []
        self._handlers[phase].append(handler)
        logger.debug(f"Registered {phase.value} hook on {self.model_name}: {getattr(handler, '__name__', handler)}")

    def remove_handler(self, phase: LifecyclePhase, handler: Hook) -> bool:
        """Remove a previously registered callback.

        Returns:
            True if the callback was found and removed
        """
        handlers = self._handlers.get(LifecyclePhase(phase), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handlers(self, phase: LifecyclePhase) -> List[Hook]:
        """Get the callbacks registered for a phase, in registration order."""
        return list(self._handlers.get(LifecyclePhase(phase), []))

    def clear(self, phase: Optional[LifecyclePhase] = None) -> None:
        """Drop callbacks for one phase, or for all phases."""
        if phase is None:
            self._handlers.clear()
        else:
            self._handlers.pop(LifecyclePhase(phase), None)

    def inherit(self, model_name: str) -> "HookRegistry":
        """Create a registry for a subclass carrying this registry's callbacks."""
        return HookRegistry(
            model_name=model_name,
            _handlers={phase: list(handlers) for phase, handlers in self._handlers.items()},
        )

    def fire(self, phase: LifecyclePhase, model: Any, extra: Iterable[Hook] = ()) -> LifecycleEvent:
        """Invoke the callbacks of a phase in order.

        For halting phases the first callback returning ``False`` stops the
        dispatch and marks the event as halted.

        Args:
            phase: Phase being fired
            model: Model instance passed to every callback
            extra: Transient callbacks run after the registered ones

        Returns:
            The fired event
        """
        phase = LifecyclePhase(phase)
        event = LifecycleEvent(phase=phase, model_name=self.model_name)

        for handler in [*self.handlers(phase), *extra]:
            event.callbacks += 1
            result = handler(model)
            if phase.halts and result is False:
                event.halted = True
                logger.warning(f"{self.model_name} {phase.value} halted by {getattr(handler, '__name__', handler)}")
                break

        return event

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics.

        Returns:
            Number of callbacks per phase
        """
        return {
            'model_name': self.model_name,
            'handlers': {phase.value: len(handlers) for phase, handlers in self._handlers.items()}
        }
