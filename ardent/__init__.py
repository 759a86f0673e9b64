"""Ardent: self-validating models for a small object mapper.

Models declare validation rules, password attributes and relation
shorthand in their class body; saving validates first, then purges
redundant attributes and hashes passwords before persisting.
"""

from ardent.core.errors import ConfigurationError, InvalidEntityError, ModelNotFoundError
from ardent.core.events import LifecyclePhase
from ardent.core.settings import get_settings
from ardent.core.validation import MessageBag, RuleValidator, ValidatorFactory
from ardent.entity import (
    Ardent,
    ArrayRequest,
    EntityState,
    RelationKind,
    configure_as_external,
)
from ardent.orm import MemoryStore, Model

__version__ = "1.0.0"

__all__ = [
    "Ardent",
    "ArrayRequest",
    "ConfigurationError",
    "EntityState",
    "InvalidEntityError",
    "LifecyclePhase",
    "MemoryStore",
    "MessageBag",
    "Model",
    "ModelNotFoundError",
    "RelationKind",
    "RuleValidator",
    "ValidatorFactory",
    "configure_as_external",
    "get_settings",
]
