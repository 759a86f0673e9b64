"""Protocol interfaces for the collaborators ardent consumes.

The controller and resolver depend only on these interfaces. The package
ships default implementations (RuleValidator, MemoryStore, ArrayRequest,
Pbkdf2Hasher) but any object satisfying a protocol can be plugged in.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class Validator(Protocol):
    """Result of running a rule set over some data."""

    def passes(self) -> bool:
        """Run the rules and report success."""
        ...

    def fails(self) -> bool:
        """Inverse of passes()."""
        ...

    def messages(self) -> Any:
        """Messages of the failed rules, as a MessageBag."""
        ...


@runtime_checkable
class ValidatorFactoryProtocol(Protocol):
    """Builds validators."""

    def make(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
        presence_verifier: Optional["PresenceVerifier"] = None,
    ) -> Validator:
        """Create a validator for data and rules.

        A presence verifier passed here replaces the factory's own for the
        unique and exists rules of this validator.
        """
        ...


@runtime_checkable
class PresenceVerifier(Protocol):
    """Answers the storage questions behind the unique and exists rules."""

    def get_count(
        self,
        table: str,
        column: str,
        value: Any,
        exclude_id: Any = None,
        id_column: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Count rows whose column equals value, optionally excluding one row."""
        ...

    def get_multi_count(
        self, table: str, column: str, values: List[Any], extra: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count rows whose column is one of values."""
        ...


@runtime_checkable
class Persister(Protocol):
    """Storage engine behind the host mapper."""

    def insert(self, table: str, attributes: Dict[str, Any], key_name: str, incrementing: bool = True) -> Any:
        """Insert a row and return its key."""
        ...

    def update(self, table: str, key_name: str, key: Any, attributes: Dict[str, Any]) -> bool:
        """Update a row by key."""
        ...

    def delete(self, table: str, key_name: str, key: Any) -> bool:
        """Delete a row by key."""
        ...

    def find(self, table: str, key_name: str, key: Any) -> Optional[Dict[str, Any]]:
        """Fetch one row by key."""
        ...

    def select(self, table: str, where: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch rows whose columns equal the where values (lists mean IN)."""
        ...


@runtime_checkable
class RequestInput(Protocol):
    """Current request input and its session."""

    def all(self) -> Dict[str, Any]:
        """All input values."""
        ...

    def flash(self) -> None:
        """Stash the input for the next request."""
        ...

    def has_session(self) -> bool:
        """Whether a session store is attached."""
        ...


@runtime_checkable
class Hasher(Protocol):
    """One-way password hashing."""

    def make(self, value: str) -> str:
        """Hash a plain text value."""
        ...

    def check(self, value: str, hashed_value: str) -> bool:
        """Check a plain text value against a hash."""
        ...
