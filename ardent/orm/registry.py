"""Registry of model types.

Relation declarations name their targets by string; this registry maps
those names (and morph class names stored in discriminator columns) back
to model classes. Every Model subclass registers itself on creation.
"""

import logging
from typing import Any, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Name to model class registry."""

    def __init__(self):
        self._models: Dict[str, Type[Any]] = {}

    def register(self, name: str, model_cls: Type[Any]) -> None:
        """Register a model class under a name.

        Re-registering a name replaces the previous class, which happens
        when a module defining models is reloaded.
        """
        if name in self._models and self._models[name] is not model_cls:
            logger.debug(f"Replacing registered model '{name}'")
        self._models[name] = model_cls

    def get(self, name: str) -> Type[Any]:
        """Get a model class by name.

        Raises:
            KeyError: If no model is registered under the name
        """
        if name not in self._models:
            raise KeyError(f"Model '{name}' is not registered")
        return self._models[name]

    def resolve(self, target: Any) -> Optional[Type[Any]]:
        """Resolve a class or registered name to a class.

        Qualified names (``app.models.User``) are matched on their last
        segment when the full name is unknown.
        """
        if target is None:
            return None
        if isinstance(target, type):
            return target
        if target in self._models:
            return self._models[target]
        short_name = str(target).rsplit(".", 1)[-1]
        return self._models.get(short_name)

    def contains(self, name: str) -> bool:
        return name in self._models

    def list(self) -> List[str]:
        return sorted(self._models)

    def remove(self, name: str) -> bool:
        return self._models.pop(name, None) is not None

    def clear(self) -> None:
        self._models.clear()


model_registry = ModelRegistry()
