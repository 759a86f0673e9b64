"""Self-validating entities and their collaborators."""

from ardent.entity.ardent import Ardent, EntityConfig, EntityState
from ardent.entity.descriptors import (
    RELATION_SIGNATURES,
    RelationDescriptor,
    RelationDescriptorResolver,
    RelationKind,
    RelationSignature,
    resolver,
)
from ardent.entity.environment import (
    Environment,
    configure_as_external,
    get_environment,
    reset_environment,
    set_hasher,
    set_request,
    set_validator_factory,
)
from ardent.entity.hashing import Pbkdf2Hasher
from ardent.entity.purge import default_purge_filters, purge_attributes
from ardent.entity.request import ArrayRequest, NullRequest

__all__ = [
    "Ardent",
    "EntityConfig",
    "EntityState",
    "RELATION_SIGNATURES",
    "RelationDescriptor",
    "RelationDescriptorResolver",
    "RelationKind",
    "RelationSignature",
    "resolver",
    "Environment",
    "configure_as_external",
    "get_environment",
    "reset_environment",
    "set_hasher",
    "set_request",
    "set_validator_factory",
    "Pbkdf2Hasher",
    "default_purge_filters",
    "purge_attributes",
    "ArrayRequest",
    "NullRequest",
]
