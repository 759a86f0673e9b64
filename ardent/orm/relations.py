"""Relation objects returned by the model relation primitives.

A relation is an unfetched handle bound to one parent model. Calling
``get_results()`` runs the lookup against the related model's store;
``get()`` always returns a list and ``first()`` a single model or None.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _key_of(value: Any) -> Any:
    """Accept a model or a raw key."""
    get_key = getattr(value, "get_key", None)
    return get_key() if callable(get_key) else value


class Relation:
    """Base relation bound to a parent model.

    Attributes:
        related: Related model class
        parent: Model instance owning the relation
    """

    many = True

    def __init__(self, related: Any, parent: Any):
        self.related = related
        self.parent = parent

    def get(self) -> List[Any]:
        """Fetch every related model."""
        raise NotImplementedError

    def first(self) -> Optional[Any]:
        results = self.get()
        return results[0] if results else None

    def get_results(self) -> Any:
        """Fetch the relation's value: a list for many relations, else a model or None."""
        return self.get() if self.many else self.first()

    def get_related(self) -> Any:
        return self.related

    def get_parent(self) -> Any:
        return self.parent

    def __repr__(self) -> str:
        related = getattr(self.related, "__name__", self.related)
        return f"{self.__class__.__name__}({type(self.parent).__name__} -> {related})"


class HasOneOrMany(Relation):
    """Related rows carry the parent's key in a foreign key column."""

    def __init__(self, related: Any, parent: Any, foreign_key: str, local_key: str):
        super().__init__(related, parent)
        self.foreign_key = foreign_key
        self.local_key = local_key

    def get_parent_key(self) -> Any:
        return self.parent.get_attribute(self.local_key)

    def _constraints(self) -> Dict[str, Any]:
        return {self.foreign_key: self.get_parent_key()}

    def get(self) -> List[Any]:
        if self.get_parent_key() is None:
            return []
        return self.related.where(**self._constraints())

    def make(self, attributes: Optional[Dict[str, Any]] = None) -> Any:
        """Build an unsaved related model with the foreign key set."""
        model = self.related(attributes or {})
        for column, value in self._constraints().items():
            model.set_attribute(column, value)
        return model

    def save(self, model: Any) -> Any:
        """Attach a related model to the parent and save it.

        Returns:
            The model, or False when its save was halted
        """
        for column, value in self._constraints().items():
            model.set_attribute(column, value)
        return model if model.save() else False

    def create(self, attributes: Optional[Dict[str, Any]] = None) -> Any:
        model = self.make(attributes)
        model.save()
        return model


class HasOne(HasOneOrMany):
    many = False


class HasMany(HasOneOrMany):
    many = True


class HasManyThrough(Relation):
    """Related rows reached through an intermediate model."""

    def __init__(self, related: Any, parent: Any, through: Any, first_key: str, second_key: str, local_key: str):
        super().__init__(related, parent)
        self.through = through
        self.first_key = first_key
        self.second_key = second_key
        self.local_key = local_key

    def get(self) -> List[Any]:
        parent_key = self.parent.get_attribute(self.local_key)
        if parent_key is None:
            return []

        through_keys = [model.get_key() for model in self.through.where(**{self.first_key: parent_key})]
        if not through_keys:
            return []
        return self.related.where(**{self.second_key: through_keys})


class BelongsTo(Relation):
    """The child row carries the related row's key."""

    many = False

    def __init__(self, related: Any, child: Any, foreign_key: str, other_key: str, relation: str):
        super().__init__(related, child)
        self.foreign_key = foreign_key
        self.other_key = other_key
        self.relation = relation

    def get(self) -> List[Any]:
        value = self.parent.get_attribute(self.foreign_key)
        if value is None or self.related is None:
            return []
        return self.related.where(**{self.other_key: value})

    def associate(self, model: Any) -> Any:
        """Point the child at a related model.

        Returns:
            The child model
        """
        self.parent.set_attribute(self.foreign_key, model.get_attribute(self.other_key))
        self.parent.set_relation(self.relation, model)
        return self.parent

    def dissociate(self) -> Any:
        """Clear the child's foreign key.

        Returns:
            The child model
        """
        self.parent.set_attribute(self.foreign_key, None)
        self.parent.set_relation(self.relation, None)
        return self.parent


class MorphTo(BelongsTo):
    """Belongs-to whose related type is read from a discriminator column.

    ``related`` is None when the discriminator is empty; the relation then
    yields no result.
    """

    def __init__(self, related: Any, child: Any, foreign_key: str, other_key: Optional[str], morph_type: str, relation: str):
        super().__init__(related, child, foreign_key, other_key, relation)
        self.morph_type = morph_type

    def associate(self, model: Any) -> Any:
        self.parent.set_attribute(self.morph_type, model.get_morph_class())
        self.related = type(model)
        self.other_key = model.get_key_name()
        return super().associate(model)

    def dissociate(self) -> Any:
        self.parent.set_attribute(self.morph_type, None)
        return super().dissociate()


class MorphOneOrMany(HasOneOrMany):
    """Related rows carry the parent's key and morph class."""

    def __init__(self, related: Any, parent: Any, morph_type: str, foreign_key: str, local_key: str):
        super().__init__(related, parent, foreign_key, local_key)
        self.morph_type = morph_type
        self.morph_class = parent.get_morph_class()

    def _constraints(self) -> Dict[str, Any]:
        return {self.foreign_key: self.get_parent_key(), self.morph_type: self.morph_class}


class MorphOne(MorphOneOrMany):
    many = False


class MorphMany(MorphOneOrMany):
    many = True


class BelongsToMany(Relation):
    """Related rows joined to the parent through a pivot table.

    Each fetched model carries its pivot row as the ``pivot`` relation.
    """

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"

    def __init__(self, related: Any, parent: Any, table: str, foreign_key: str, other_key: str, relation: Optional[str] = None):
        super().__init__(related, parent)
        self.table = table
        self.foreign_key = foreign_key
        self.other_key = other_key
        self.relation = relation
        self.pivot_columns: List[str] = []
        self.pivot_timestamps = False

    def with_pivot(self, *columns: Any) -> "BelongsToMany":
        """Expose extra pivot columns on fetched models."""
        for column in columns:
            if isinstance(column, (list, tuple)):
                self.with_pivot(*column)
            elif column not in self.pivot_columns:
                self.pivot_columns.append(column)
        return self

    def with_timestamps(self) -> "BelongsToMany":
        """Maintain created_at and updated_at on pivot rows."""
        self.pivot_timestamps = True
        return self.with_pivot(self.CREATED_AT, self.UPDATED_AT)

    def _store(self) -> Any:
        return self.parent.get_store()

    def _pivot_constraints(self) -> Dict[str, Any]:
        return {self.foreign_key: self.parent.get_key()}

    def pivot_rows(self) -> List[Dict[str, Any]]:
        if self.parent.get_key() is None:
            return []
        return self._store().select(self.table, self._pivot_constraints())

    def get(self) -> List[Any]:
        rows = self.pivot_rows()
        if not rows:
            return []

        by_key = {row[self.other_key]: row for row in rows}
        models = self.related.where(**{self.related.get_key_name(): list(by_key)})
        for model in models:
            row = by_key[model.get_key()]
            columns = [self.foreign_key, self.other_key, *self.pivot_columns]
            pivot = self.parent.new_pivot(self.table, {c: row.get(c) for c in columns if c in row})
            model.set_relation("pivot", pivot)
        return models

    def attach(self, ids: Any, attributes: Optional[Dict[str, Any]] = None) -> None:
        """Insert pivot rows joining the parent to related models or keys."""
        if not isinstance(ids, (list, tuple, set)):
            ids = [ids]

        for related_id in ids:
            row = {**self._pivot_constraints(), self.other_key: _key_of(related_id), **(attributes or {})}
            if self.pivot_timestamps:
                now = datetime.now()
                row.setdefault(self.CREATED_AT, now)
                row.setdefault(self.UPDATED_AT, now)
            self._store().insert(self.table, row, "id", True)
        logger.debug(f"Attached {len(ids)} row(s) to pivot '{self.table}'")

    def detach(self, ids: Optional[Iterable[Any]] = None) -> int:
        """Delete pivot rows for the given related keys, or all of them.

        Returns:
            Number of deleted pivot rows
        """
        where = self._pivot_constraints()
        if ids is not None:
            if not isinstance(ids, (list, tuple, set)):
                ids = [ids]
            where[self.other_key] = [_key_of(related_id) for related_id in ids]
        return self._store().delete_where(self.table, where)


class MorphToMany(BelongsToMany):
    """Belongs-to-many whose pivot rows are scoped by a morph class column.

    With ``inverse`` the parent is the owning side (morphed-by-many) and the
    morph class stored in the pivot is the related type's.
    """

    def __init__(
        self,
        related: Any,
        parent: Any,
        name: str,
        table: str,
        foreign_key: str,
        other_key: str,
        relation: Optional[str] = None,
        inverse: bool = False,
    ):
        super().__init__(related, parent, table, foreign_key, other_key, relation)
        self.morph_name = name
        self.morph_type = f"{name}_type"
        self.inverse = inverse
        self.morph_class = related.get_morph_class() if inverse else parent.get_morph_class()

    def _pivot_constraints(self) -> Dict[str, Any]:
        return {**super()._pivot_constraints(), self.morph_type: self.morph_class}
