"""Pydantic base for ardent's declarative records.

Relation signatures, descriptors, per-type entity configuration, store
table summaries and error contexts are built once and then only read.
They share one base so every such record rejects unknown fields and
coerced values, and cannot be changed after construction.
"""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Immutable record with exact field types.

    Frozen records can be shared between entity instances; an entity type's
    EntityConfig is built once and read by every instance.
    """

    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        frozen=True,
        validate_default=True,
    )


__all__ = ["StrictBaseModel"]
