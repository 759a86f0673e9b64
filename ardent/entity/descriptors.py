"""Declarative relation descriptors.

An entity declares its relations in a class-body table::

    class Order(Ardent):
        relations = {
            "customer": (RelationKind.BELONGS_TO, "Customer"),
            "items": (RelationKind.HAS_MANY, "Item", {"foreign_key": "order_id"}),
            "tags": {"kind": "morph_to_many", "target": "Tag", "morph_name": "taggable"},
        }

Declarations are stored raw. RelationDescriptorResolver checks their shape
when a relation is first resolved, fills the optional arguments and calls
the matching model relation primitive.
"""

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import Field

from ardent.core.errors.errors import configuration_error
from ardent.core.models import StrictBaseModel
from ardent.utils.text import snake

logger = logging.getLogger(__name__)


class RelationKind(str, Enum):
    """Relation kinds a descriptor may declare."""

    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    HAS_MANY_THROUGH = "has_many_through"
    BELONGS_TO = "belongs_to"
    BELONGS_TO_MANY = "belongs_to_many"
    MORPH_TO = "morph_to"
    MORPH_ONE = "morph_one"
    MORPH_MANY = "morph_many"
    MORPH_TO_MANY = "morph_to_many"
    MORPHED_BY_MANY = "morphed_by_many"

    @classmethod
    def parse(cls, value: Any) -> Optional["RelationKind"]:
        """Accept a member, its value or its name; None when unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for member in cls:
                if key.lower() == member.value or key.upper() == member.name:
                    return member
        return None


class RelationSignature(StrictBaseModel):
    """Argument layout of one relation primitive."""

    primitive: str = Field(..., description="Model method building the relation")
    needs_target: bool = Field(default=True, description="Whether a target type is required")
    arguments: Tuple[str, ...] = Field(default=(), description="Option names in call order")
    required: Tuple[str, ...] = Field(default=(), description="Options that must be declared")
    pivot: bool = Field(default=False, description="Whether pivot options apply")

    @property
    def optional(self) -> Tuple[str, ...]:
        return tuple(name for name in self.arguments if name not in self.required)


RELATION_SIGNATURES: Dict[RelationKind, RelationSignature] = {
    RelationKind.HAS_ONE: RelationSignature(
        primitive="has_one", arguments=("foreign_key", "local_key"),
    ),
    RelationKind.HAS_MANY: RelationSignature(
        primitive="has_many", arguments=("foreign_key", "local_key"),
    ),
    RelationKind.HAS_MANY_THROUGH: RelationSignature(
        primitive="has_many_through",
        arguments=("through", "first_key", "second_key", "local_key"),
        required=("through",),
    ),
    RelationKind.BELONGS_TO: RelationSignature(
        primitive="belongs_to", arguments=("foreign_key", "other_key", "relation_name"),
    ),
    RelationKind.BELONGS_TO_MANY: RelationSignature(
        primitive="belongs_to_many",
        arguments=("table", "foreign_key", "other_key", "relation_name"),
        pivot=True,
    ),
    RelationKind.MORPH_TO: RelationSignature(
        primitive="morph_to", needs_target=False, arguments=("morph_name", "morph_type", "morph_id"),
    ),
    RelationKind.MORPH_ONE: RelationSignature(
        primitive="morph_one",
        arguments=("morph_name", "morph_type", "morph_id", "local_key"),
        required=("morph_name",),
    ),
    RelationKind.MORPH_MANY: RelationSignature(
        primitive="morph_many",
        arguments=("morph_name", "morph_type", "morph_id", "local_key"),
        required=("morph_name",),
    ),
    RelationKind.MORPH_TO_MANY: RelationSignature(
        primitive="morph_to_many",
        arguments=("morph_name", "table", "foreign_key", "other_key", "inverse"),
        required=("morph_name",),
        pivot=True,
    ),
    RelationKind.MORPHED_BY_MANY: RelationSignature(
        primitive="morphed_by_many",
        arguments=("morph_name", "table", "foreign_key", "other_key"),
        required=("morph_name",),
        pivot=True,
    ),
}

PIVOT_OPTIONS = ("pivot_columns", "with_timestamps")


class RelationDescriptor(StrictBaseModel):
    """A checked relation declaration with every argument filled."""

    name: str = Field(..., description="Name the relation is registered under")
    kind: RelationKind = Field(..., description="Relation kind")
    target: Optional[str] = Field(default=None, description="Related model name")
    options: Dict[str, Any] = Field(default_factory=dict, description="Filled options")

    @property
    def signature(self) -> RelationSignature:
        return RELATION_SIGNATURES[self.kind]

    def call_arguments(self) -> Tuple[Any, ...]:
        """Positional arguments for the relation primitive."""
        arguments = tuple(self.options.get(name) for name in self.signature.arguments)
        if self.signature.needs_target:
            return (self.target, *arguments)
        return arguments


def _split_declaration(declaration: Any) -> Tuple[Any, Any, Dict[str, Any]]:
    """Split a raw declaration into kind, target and options.

    Returns None as the kind when the declaration has no recognisable shape.
    """
    if isinstance(declaration, RelationDescriptor):
        return declaration.kind, declaration.target, dict(declaration.options)

    if isinstance(declaration, Mapping):
        options = {k: v for k, v in declaration.items() if k not in ("kind", "target", "options")}
        options.update(declaration.get("options") or {})
        return declaration.get("kind"), declaration.get("target"), options

    if isinstance(declaration, (list, tuple)) and declaration:
        kind, rest = declaration[0], list(declaration[1:])
        options: Dict[str, Any] = {}
        if rest and isinstance(rest[-1], Mapping):
            options = dict(rest.pop())
        if len(rest) > 1:
            return None, None, {}
        return kind, rest[0] if rest else None, options

    return None, None, {}


def _target_name(target: Any) -> Optional[str]:
    if target is None or isinstance(target, str):
        return target
    return getattr(target, "__name__", str(target))


class RelationDescriptorResolver:
    """Turns relation declarations into relation objects.

    This class provides:
    1. Shape checks for declarations, raising ConfigurationError
    2. Default filling for optional arguments
    3. Dispatch to the model relation primitives
    """

    def describe(self, model_name: str, name: str, declaration: Any) -> RelationDescriptor:
        """Check a raw declaration and fill its optional arguments.

        Args:
            model_name: Owning model type name, used in errors
            name: Registered relation name
            declaration: Raw declaration from the relations table

        Returns:
            The filled descriptor

        Raises:
            ConfigurationError: If the declaration is malformed
        """
        raw_kind, target, options = _split_declaration(declaration)

        kind = RelationKind.parse(raw_kind)
        if kind is None:
            raise configuration_error(
                f"Relation '{name}' has an unknown kind",
                model_name=model_name,
                operation="resolve_relation",
                config_key=name,
                expected=f"one of {[k.value for k in RelationKind]}",
                actual=raw_kind if raw_kind is not None else declaration,
            )

        signature = RELATION_SIGNATURES[kind]
        target = _target_name(target)

        if signature.needs_target and not target:
            raise configuration_error(
                f"Relation '{name}' ({kind.value}) needs a target model",
                model_name=model_name,
                operation="resolve_relation",
                config_key=f"{name}.target",
                expected="a model name",
                actual=target,
            )
        if not signature.needs_target and target is not None:
            raise configuration_error(
                f"Relation '{name}' ({kind.value}) does not accept a target model",
                model_name=model_name,
                operation="resolve_relation",
                config_key=f"{name}.target",
                expected="no target",
                actual=target,
            )

        allowed = set(signature.arguments) | (set(PIVOT_OPTIONS) if signature.pivot else set())
        unknown = sorted(set(options) - allowed)
        if unknown:
            raise configuration_error(
                f"Relation '{name}' ({kind.value}) got unknown options {unknown}",
                model_name=model_name,
                operation="resolve_relation",
                config_key=f"{name}.{unknown[0]}",
                expected=f"options among {sorted(allowed)}",
                actual=unknown,
            )

        missing = [option for option in signature.required if options.get(option) is None]
        if missing:
            raise configuration_error(
                f"Relation '{name}' ({kind.value}) is missing required options {missing}",
                model_name=model_name,
                operation="resolve_relation",
                config_key=f"{name}.{missing[0]}",
                expected=f"values for {list(signature.required)}",
                actual=options,
            )

        filled = {option: options.get(option) for option in signature.arguments}
        if kind in (RelationKind.BELONGS_TO, RelationKind.BELONGS_TO_MANY) and filled["relation_name"] is None:
            filled["relation_name"] = name
        if kind is RelationKind.MORPH_TO and filled["morph_name"] is None:
            filled["morph_name"] = snake(name)
        if signature.pivot:
            for option in PIVOT_OPTIONS:
                filled[option] = options.get(option)

        return RelationDescriptor(name=name, kind=kind, target=target, options=filled)

    def descriptor(self, entity: Any, name: str) -> RelationDescriptor:
        """Look up and check the declaration registered under a name.

        Raises:
            ConfigurationError: If no relation is registered under the name
        """
        model_name = type(entity).__name__
        declarations = entity.relation_declarations()
        if name not in declarations:
            raise configuration_error(
                f"Relation '{name}' is not declared on {model_name}",
                model_name=model_name,
                operation="resolve_relation",
                config_key=name,
                expected=f"one of {sorted(declarations)}",
                actual=name,
            )
        return self.describe(model_name, name, declarations[name])

    def resolve(self, entity: Any, name: str) -> Any:
        """Build the relation object for a declared relation.

        Args:
            entity: Owning model instance
            name: Registered relation name

        Returns:
            An unfetched relation bound to the entity
        """
        descriptor = self.descriptor(entity, name)
        primitive = getattr(entity, descriptor.signature.primitive)
        relation = primitive(*descriptor.call_arguments())
        logger.debug(f"Resolved {type(entity).__name__}.{name} as {descriptor.kind.value}")

        if descriptor.signature.pivot:
            pivot_columns = descriptor.options.get("pivot_columns")
            if pivot_columns:
                if isinstance(pivot_columns, str):
                    pivot_columns = [pivot_columns]
                relation.with_pivot(*pivot_columns)
            if descriptor.options.get("with_timestamps"):
                relation.with_timestamps()

        return relation


resolver = RelationDescriptorResolver()
