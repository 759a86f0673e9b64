"""Host model base class.

Model keeps an ordered attribute bag with original-value tracking, fires
lifecycle events around persistence and offers the relation construction
primitives the descriptor resolver dispatches to. Rows are persisted
through a Persister, the in-memory default store unless one is declared.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ardent.core.errors.errors import ErrorContext, ModelNotFoundError, configuration_error
from ardent.core.errors.models import LookupErrorContext
from ardent.core.events.events import Hook, HookRegistry, LifecycleEvent, LifecyclePhase
from ardent.orm.registry import model_registry
from ardent.orm.relations import (
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasManyThrough,
    HasOne,
    MorphMany,
    MorphOne,
    MorphTo,
    MorphToMany,
)
from ardent.orm.store import get_default_store
from ardent.utils.text import plural, snake

logger = logging.getLogger(__name__)


class Model:
    """Base class for mapped models.

    Class attributes configure the mapping:

    Attributes:
        table: Table name, the snake-cased plural class name when None
        primary_key: Primary key column
        incrementing: Whether the store assigns integer keys
        timestamps: Whether created_at and updated_at are maintained
        fillable: Columns accepted by fill(); empty means all
        guarded: Columns rejected by fill(); ``"*"`` rejects all
        morph_class: Name stored in polymorphic type columns
        persister: Store for this type, the default store when None
        hooks: Lifecycle callbacks keyed by phase; values are callables,
            method names or lists of either

    Any other attribute name reads and writes the attribute bag, so
    ``user.email = "a@b.c"`` sets a column and ``user.missing`` is None.

    Names defined on the class (the attributes above, ``exists``, methods,
    and subclass flags such as ``entity_state``) are reserved: dotted access
    to them never reaches the bag. Columns with those names are read and
    written with get_attribute() and set_attribute().
    """

    __abstract__ = True

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"

    table: Optional[str] = None
    primary_key: str = "id"
    incrementing: bool = True
    timestamps: bool = True
    fillable: List[str] = []
    guarded: List[str] = []
    morph_class: Optional[str] = None
    persister: Any = None
    hooks: Dict[Any, Any] = {}

    exists: bool = False

    _hooks: HookRegistry = HookRegistry(model_name="Model")

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._hooks = cls._hooks.inherit(cls.__name__)

        for phase, callbacks in cls.__dict__.get("hooks", {}).items():
            if not isinstance(callbacks, (list, tuple)):
                callbacks = [callbacks]
            for callback in callbacks:
                cls._hooks.register_handler(LifecyclePhase(phase), cls._as_hook(callback))

        if not cls.__dict__.get("__abstract__", False):
            model_registry.register(cls.__name__, cls)
            # Morph columns store the alias, not the class name
            if cls.__dict__.get("morph_class"):
                model_registry.register(cls.__dict__["morph_class"], cls)

    @staticmethod
    def _as_hook(callback: Any) -> Hook:
        if isinstance(callback, str):
            def call_method(model):
                return getattr(model, callback)()
            call_method.__name__ = callback
            return call_method
        return callback

    def __init__(self, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any):
        """Initialize a model.

        Args:
            attributes: Initial attributes, passed through fill()
            **kwargs: More initial attributes
        """
        object.__setattr__(self, "_attributes", {})
        object.__setattr__(self, "_original", {})
        object.__setattr__(self, "_relations", {})
        object.__setattr__(self, "_transient_hooks", {})
        self.fill({**(attributes or {}), **kwargs})

    # Attribute routing

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get_attribute(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self.set_attribute(name, value)

    def __delattr__(self, name: str) -> None:
        if name in self._attributes:
            del self._attributes[name]
        else:
            object.__delattr__(self, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._attributes!r}>"

    # Attributes

    def get_attribute(self, key: str) -> Any:
        """Get an attribute value, a loaded relation, or None."""
        if key in self._attributes:
            return self._attributes[key]
        return self._relations.get(key)

    def set_attribute(self, key: str, value: Any) -> "Model":
        self._attributes[key] = value
        return self

    def is_fillable(self, key: str) -> bool:
        if key in self.fillable:
            return True
        if "*" in self.guarded or key in self.guarded:
            return False
        return not self.fillable

    def fill(self, attributes: Dict[str, Any]) -> "Model":
        """Set every fillable attribute from a mapping."""
        for key, value in attributes.items():
            if self.is_fillable(key):
                self.set_attribute(key, value)
        return self

    def get_attributes(self) -> Dict[str, Any]:
        """Get a copy of the attribute bag."""
        return dict(self._attributes)

    def set_raw_attributes(self, attributes: Dict[str, Any], sync: bool = False) -> "Model":
        """Replace the attribute bag without fill() filtering."""
        object.__setattr__(self, "_attributes", dict(attributes))
        if sync:
            self.sync_original()
        return self

    def get_original(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return dict(self._original)
        return self._original.get(key, default)

    def sync_original(self) -> "Model":
        object.__setattr__(self, "_original", dict(self._attributes))
        return self

    def get_dirty(self) -> Dict[str, Any]:
        """Attributes whose values differ from the original ones."""
        return {
            key: value
            for key, value in self._attributes.items()
            if key not in self._original or self._original[key] != value
        }

    def is_dirty(self, *keys: str) -> bool:
        dirty = self.get_dirty()
        if not keys:
            return bool(dirty)
        return any(key in dirty for key in keys)

    # Keys and names

    @classmethod
    def get_table(cls) -> str:
        return cls.table or snake(plural(cls.__name__))

    @classmethod
    def get_key_name(cls) -> str:
        return cls.primary_key

    def get_key(self) -> Any:
        return self._attributes.get(self.get_key_name())

    @classmethod
    def get_foreign_key(cls) -> str:
        """Default foreign key naming this type, e.g. ``user_id``."""
        return f"{snake(cls.__name__)}_{cls.primary_key}"

    @classmethod
    def get_morph_class(cls) -> str:
        return cls.morph_class or cls.__name__

    @classmethod
    def resolve_store(cls) -> Any:
        return cls.persister if cls.persister is not None else get_default_store()

    def get_store(self) -> Any:
        return self.persister if self.persister is not None else get_default_store()

    # Relations cache

    def set_relation(self, name: str, value: Any) -> "Model":
        self._relations[name] = value
        return self

    def get_relation(self, name: str) -> Any:
        return self._relations.get(name)

    def relation_loaded(self, name: str) -> bool:
        return name in self._relations

    def get_relations(self) -> Dict[str, Any]:
        return dict(self._relations)

    # Lifecycle events

    @classmethod
    def on(cls, phase: LifecyclePhase, callback: Optional[Hook] = None) -> Any:
        """Register a lifecycle callback for this type.

        Usable directly or as a decorator::

            @User.on(LifecyclePhase.SAVING)
            def stamp(user):
                ...

        Args:
            phase: Lifecycle phase
            callback: Callable receiving the model; returning False from an
                "-ing" phase halts the operation

        Returns:
            The callback
        """
        def register(func: Hook) -> Hook:
            cls._hooks.register_handler(LifecyclePhase(phase), func)
            return func

        if callback is None:
            return register
        return register(callback)

    @classmethod
    def get_hook_registry(cls) -> HookRegistry:
        return cls._hooks

    def add_transient_hook(self, phase: LifecyclePhase, callback: Hook) -> None:
        """Register a callback on this instance only, until cleared."""
        self._transient_hooks.setdefault(LifecyclePhase(phase), []).append(callback)

    def clear_transient_hooks(self) -> None:
        self._transient_hooks.clear()

    def fire_event(self, phase: LifecyclePhase) -> LifecycleEvent:
        """Fire a lifecycle phase with type and instance callbacks.

        Returns:
            The fired event; ``halted`` tells whether a callback aborted it
        """
        phase = LifecyclePhase(phase)
        return self._hooks.fire(phase, self, self._transient_hooks.get(phase, ()))

    # Persistence

    def save(self, options: Optional[Dict[str, Any]] = None) -> bool:
        """Insert or update the model.

        Args:
            options: ``timestamps`` set to False skips timestamp updates

        Returns:
            True when saved, False when a lifecycle callback halted it
        """
        options = dict(options or {})

        if self.fire_event(LifecyclePhase.SAVING).halted:
            return False

        if self.exists:
            saved = self._perform_update(options)
        else:
            saved = self._perform_insert(options)

        if saved:
            self.fire_event(LifecyclePhase.SAVED)
            self.sync_original()
        return saved

    def _perform_insert(self, options: Dict[str, Any]) -> bool:
        if self.fire_event(LifecyclePhase.CREATING).halted:
            return False

        if self.timestamps and options.get("timestamps", True):
            now = datetime.now()
            self._attributes.setdefault(self.CREATED_AT, now)
            self._attributes[self.UPDATED_AT] = now

        key = self.get_store().insert(self.get_table(), self._attributes, self.get_key_name(), self.incrementing)
        self._attributes[self.get_key_name()] = key
        self.exists = True
        logger.debug(f"Inserted {type(self).__name__} {self.get_key_name()}={key}")

        self.fire_event(LifecyclePhase.CREATED)
        return True

    def _perform_update(self, options: Dict[str, Any]) -> bool:
        if not self.is_dirty():
            return True

        if self.fire_event(LifecyclePhase.UPDATING).halted:
            return False

        if self.timestamps and options.get("timestamps", True):
            self._attributes[self.UPDATED_AT] = datetime.now()

        self.get_store().update(self.get_table(), self.get_key_name(), self.get_key(), self.get_dirty())
        logger.debug(f"Updated {type(self).__name__} {self.get_key_name()}={self.get_key()}")

        self.fire_event(LifecyclePhase.UPDATED)
        return True

    def delete(self) -> bool:
        """Delete the model's row.

        Returns:
            True when deleted, False when not persisted or halted
        """
        if not self.exists:
            return False
        if self.fire_event(LifecyclePhase.DELETING).halted:
            return False

        self.get_store().delete(self.get_table(), self.get_key_name(), self.get_key())
        self.exists = False
        self.fire_event(LifecyclePhase.DELETED)
        return True

    # Queries

    @classmethod
    def new_from_store(cls, row: Dict[str, Any]) -> "Model":
        """Build an existing model from a stored row."""
        model = cls()
        model.set_raw_attributes(row, sync=True)
        model.exists = True
        return model

    @classmethod
    def _lookup(cls, key: Any) -> Optional["Model"]:
        row = cls.resolve_store().find(cls.get_table(), cls.get_key_name(), key)
        return cls.new_from_store(row) if row is not None else None

    @classmethod
    def find(cls, key: Any) -> Optional["Model"]:
        return cls._lookup(key)

    @classmethod
    def find_or_fail(cls, key: Any) -> "Model":
        """Find a model by key.

        Raises:
            ModelNotFoundError: If no row has the key
        """
        model = cls._lookup(key)
        if model is None:
            raise ModelNotFoundError(
                message=f"No query results for model [{cls.__name__}] {key}",
                context=ErrorContext.create(
                    model_name=cls.__name__,
                    error_type="not_found",
                    error_location=f"{cls.__name__}.find_or_fail",
                    component="orm",
                    operation="find",
                ),
                lookup_context=LookupErrorContext(
                    table=cls.get_table(), key_name=cls.get_key_name(), key_value=repr(key)
                ),
            )
        return model

    @classmethod
    def all(cls) -> List["Model"]:
        return [cls.new_from_store(row) for row in cls.resolve_store().select(cls.get_table())]

    @classmethod
    def where(cls, **conditions: Any) -> List["Model"]:
        """Fetch models whose columns equal the given values (lists mean IN)."""
        return [cls.new_from_store(row) for row in cls.resolve_store().select(cls.get_table(), conditions)]

    @classmethod
    def first_where(cls, **conditions: Any) -> Optional["Model"]:
        models = cls.where(**conditions)
        return models[0] if models else None

    @classmethod
    def create(cls, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "Model":
        model = cls(attributes, **kwargs)
        model.save()
        return model

    def new_pivot(self, table: str, attributes: Dict[str, Any]) -> "Pivot":
        pivot = Pivot()
        pivot.table = table
        pivot.persister = self.persister
        pivot.set_raw_attributes(attributes, sync=True)
        pivot.exists = True
        return pivot

    # Relation primitives

    def _resolve_related(self, related: Any, operation: str) -> Any:
        model_cls = model_registry.resolve(related)
        if model_cls is None:
            raise configuration_error(
                f"Related model '{related}' is not registered",
                model_name=type(self).__name__,
                operation=operation,
                config_key="target",
                expected="a registered model name or class",
                actual=related,
            )
        return model_cls

    def has_one(self, related: Any, foreign_key: Optional[str] = None, local_key: Optional[str] = None) -> HasOne:
        related = self._resolve_related(related, "has_one")
        return HasOne(related, self, foreign_key or self.get_foreign_key(), local_key or self.get_key_name())

    def has_many(self, related: Any, foreign_key: Optional[str] = None, local_key: Optional[str] = None) -> HasMany:
        related = self._resolve_related(related, "has_many")
        return HasMany(related, self, foreign_key or self.get_foreign_key(), local_key or self.get_key_name())

    def has_many_through(
        self,
        related: Any,
        through: Any,
        first_key: Optional[str] = None,
        second_key: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> HasManyThrough:
        related = self._resolve_related(related, "has_many_through")
        through = self._resolve_related(through, "has_many_through")
        return HasManyThrough(
            related,
            self,
            through,
            first_key or self.get_foreign_key(),
            second_key or through.get_foreign_key(),
            local_key or self.get_key_name(),
        )

    def belongs_to(
        self,
        related: Any,
        foreign_key: Optional[str] = None,
        other_key: Optional[str] = None,
        relation: Optional[str] = None,
    ) -> BelongsTo:
        """Inverse of has_one / has_many.

        Args:
            related: Related model class or registered name
            foreign_key: Column on this model, ``<relation>_id`` by default
            other_key: Column on the related model, its primary key by default
            relation: Relation name, required when foreign_key is absent
        """
        related = self._resolve_related(related, "belongs_to")
        if foreign_key is None:
            if relation is None:
                raise configuration_error(
                    "belongs_to needs a foreign key or a relation name",
                    model_name=type(self).__name__,
                    operation="belongs_to",
                    config_key="relation_name",
                    expected="str",
                    actual=None,
                )
            foreign_key = f"{snake(relation)}_id"
        return BelongsTo(related, self, foreign_key, other_key or related.get_key_name(), relation or foreign_key)

    def belongs_to_many(
        self,
        related: Any,
        table: Optional[str] = None,
        foreign_key: Optional[str] = None,
        other_key: Optional[str] = None,
        relation: Optional[str] = None,
    ) -> BelongsToMany:
        related = self._resolve_related(related, "belongs_to_many")
        if table is None:
            table = "_".join(sorted([snake(type(self).__name__), snake(related.__name__)]))
        return BelongsToMany(
            related,
            self,
            table,
            foreign_key or self.get_foreign_key(),
            other_key or related.get_foreign_key(),
            relation,
        )

    def morph_to(self, name: Optional[str] = None, type: Optional[str] = None, id: Optional[str] = None) -> MorphTo:
        """Polymorphic belongs-to.

        The related type is read from the ``<name>_type`` column and the key
        from ``<name>_id``.
        """
        if name is None:
            raise configuration_error(
                "morph_to needs a relation name",
                model_name=self.__class__.__name__,
                operation="morph_to",
                config_key="morph_name",
                expected="str",
                actual=None,
            )
        morph_type = type or f"{name}_type"
        morph_id = id or f"{name}_id"

        class_name = self.get_attribute(morph_type)
        if class_name is None:
            return MorphTo(None, self, morph_id, None, morph_type, name)

        related = self._resolve_related(class_name, "morph_to")
        return MorphTo(related, self, morph_id, related.get_key_name(), morph_type, name)

    def morph_one(
        self,
        related: Any,
        name: str,
        type: Optional[str] = None,
        id: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> MorphOne:
        related = self._resolve_related(related, "morph_one")
        return MorphOne(related, self, type or f"{name}_type", id or f"{name}_id", local_key or self.get_key_name())

    def morph_many(
        self,
        related: Any,
        name: str,
        type: Optional[str] = None,
        id: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> MorphMany:
        related = self._resolve_related(related, "morph_many")
        return MorphMany(related, self, type or f"{name}_type", id or f"{name}_id", local_key or self.get_key_name())

    def morph_to_many(
        self,
        related: Any,
        name: str,
        table: Optional[str] = None,
        foreign_key: Optional[str] = None,
        other_key: Optional[str] = None,
        inverse: bool = False,
    ) -> MorphToMany:
        related = self._resolve_related(related, "morph_to_many")
        return MorphToMany(
            related,
            self,
            name,
            table or plural(name),
            foreign_key or f"{name}_id",
            other_key or related.get_foreign_key(),
            inverse=bool(inverse),
        )

    def morphed_by_many(
        self,
        related: Any,
        name: str,
        table: Optional[str] = None,
        foreign_key: Optional[str] = None,
        other_key: Optional[str] = None,
    ) -> MorphToMany:
        return self.morph_to_many(
            related,
            name,
            table,
            foreign_key or self.get_foreign_key(),
            other_key or f"{name}_id",
            inverse=True,
        )


class Pivot(Model):
    """A pivot row attached to models fetched through belongs-to-many."""

    __abstract__ = True

    timestamps = False

    def get_table(self) -> str:
        return self.table
