"""Minimal host mapper: models, relations and the in-memory store."""

from ardent.orm.model import Model, Pivot
from ardent.orm.registry import ModelRegistry, model_registry
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
    Relation,
)
from ardent.orm.store import MemoryStore, TableInfo, get_default_store, set_default_store

__all__ = [
    "Model",
    "Pivot",
    "ModelRegistry",
    "model_registry",
    "Relation",
    "HasOne",
    "HasMany",
    "HasManyThrough",
    "BelongsTo",
    "BelongsToMany",
    "MorphTo",
    "MorphOne",
    "MorphMany",
    "MorphToMany",
    "MemoryStore",
    "TableInfo",
    "get_default_store",
    "set_default_store",
]
