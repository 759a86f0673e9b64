"""In-memory storage engine.

This module provides MemoryStore, the default Persister behind the host
mapper. It also answers presence questions for the unique and exists
validation rules.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from ardent.core.models import StrictBaseModel

logger = logging.getLogger(__name__)


class TableInfo(StrictBaseModel):
    """Summary of one stored table."""

    name: str = Field(..., description="Table name")
    rows: int = Field(..., description="Number of stored rows")
    next_key: int = Field(..., description="Next auto-increment key")


def _matches(row: Dict[str, Any], where: Dict[str, Any]) -> bool:
    for column, expected in where.items():
        actual = row.get(column)
        if isinstance(expected, (list, tuple, set)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def _loose_equals(left: Any, right: Any) -> bool:
    # Rule parameters arrive as strings; stored keys may be integers
    return left == right or (left is not None and right is not None and str(left) == str(right))


class MemoryStore:
    """Dictionary backed storage engine.

    This class provides:
    1. Row storage per table with auto-increment keys
    2. Equality and membership filtering
    3. Row counts for unique and exists validation rules
    """

    def __init__(self, name: str = "memory"):
        """Initialize the store.

        Args:
            name: Store name used in logs
        """
        self.name = name
        self._tables: Dict[str, Dict[Any, Dict[str, Any]]] = {}
        self._counters: Dict[str, int] = {}

    def _table(self, table: str) -> Dict[Any, Dict[str, Any]]:
        return self._tables.setdefault(table, {})

    def insert(self, table: str, attributes: Dict[str, Any], key_name: str, incrementing: bool = True) -> Any:
        """Insert a row.

        Args:
            table: Table name
            attributes: Column values
            key_name: Primary key column
            incrementing: Whether to assign the next integer key when absent

        Returns:
            The row's key
        """
        row = copy.deepcopy(dict(attributes))
        key = row.get(key_name)

        if key is None:
            if not incrementing:
                raise ValueError(f"Row for '{table}' has no value for key '{key_name}'")
            key = self._counters.get(table, 0) + 1
            row[key_name] = key

        if isinstance(key, int):
            self._counters[table] = max(self._counters.get(table, 0), key)

        self._table(table)[key] = row
        logger.debug(f"{self.name}: inserted {table}.{key_name}={key}")
        return key

    def update(self, table: str, key_name: str, key: Any, attributes: Dict[str, Any]) -> bool:
        """Update a row by key.

        Returns:
            True if the row exists and was updated
        """
        rows = self._table(table)
        if key not in rows:
            return False
        rows[key].update(copy.deepcopy(dict(attributes)))
        logger.debug(f"{self.name}: updated {table}.{key_name}={key} ({', '.join(attributes)})")
        return True

    def delete(self, table: str, key_name: str, key: Any) -> bool:
        """Delete a row by key.

        Returns:
            True if a row was removed
        """
        removed = self._table(table).pop(key, None) is not None
        if removed:
            logger.debug(f"{self.name}: deleted {table}.{key_name}={key}")
        return removed

    def delete_where(self, table: str, where: Dict[str, Any]) -> int:
        """Delete every row matching the filter.

        Returns:
            Number of removed rows
        """
        rows = self._table(table)
        doomed = [key for key, row in rows.items() if _matches(row, where)]
        for key in doomed:
            del rows[key]
        return len(doomed)

    def find(self, table: str, key_name: str, key: Any) -> Optional[Dict[str, Any]]:
        """Fetch a row by key, or None."""
        row = self._table(table).get(key)
        return copy.deepcopy(row) if row is not None else None

    def select(self, table: str, where: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch rows whose columns equal the filter values.

        Args:
            table: Table name
            where: Column filter; list values mean membership

        Returns:
            Copies of matching rows in insertion order
        """
        where = where or {}
        return [copy.deepcopy(row) for row in self._table(table).values() if _matches(row, where)]

    def get_count(
        self,
        table: str,
        column: str,
        value: Any,
        exclude_id: Any = None,
        id_column: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Count rows whose column equals value.

        Args:
            table: Table name
            column: Column compared with value
            value: Value searched for
            exclude_id: Key of a row to ignore
            id_column: Column holding exclude_id
            extra: Additional column equalities

        Returns:
            Number of matching rows
        """
        count = 0
        for row in self._table(table).values():
            if not _loose_equals(row.get(column), value):
                continue
            if exclude_id is not None and _loose_equals(row.get(id_column or "id"), exclude_id):
                continue
            if not self._extra_matches(row, extra):
                continue
            count += 1
        return count

    def get_multi_count(self, table: str, column: str, values: List[Any], extra: Optional[Dict[str, Any]] = None) -> int:
        """Count rows whose column is one of values."""
        count = 0
        for row in self._table(table).values():
            if any(_loose_equals(row.get(column), value) for value in values) and self._extra_matches(row, extra):
                count += 1
        return count

    @staticmethod
    def _extra_matches(row: Dict[str, Any], extra: Optional[Dict[str, Any]]) -> bool:
        for column, expected in (extra or {}).items():
            actual = row.get(column)
            if expected == "NULL":
                if actual is not None:
                    return False
            elif expected == "NOT_NULL":
                if actual is None:
                    return False
            elif not _loose_equals(actual, expected):
                return False
        return True

    def truncate(self, table: str) -> None:
        """Remove every row of a table and reset its counter."""
        self._tables.pop(table, None)
        self._counters.pop(table, None)

    def reset(self) -> None:
        """Remove every table."""
        self._tables.clear()
        self._counters.clear()

    def tables(self) -> List[TableInfo]:
        """Describe the stored tables."""
        return [
            TableInfo(name=name, rows=len(rows), next_key=self._counters.get(name, 0) + 1)
            for name, rows in self._tables.items()
        ]


_default_store = MemoryStore("default")


def get_default_store() -> MemoryStore:
    """Get the store used by models that declare none."""
    return _default_store


def set_default_store(store: Any) -> None:
    """Replace the store used by models that declare none."""
    global _default_store
    _default_store = store
    logger.info(f"Default store set to {getattr(store, 'name', type(store).__name__)}")
