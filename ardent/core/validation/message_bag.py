"""Field keyed collection of validation messages."""

from typing import Dict, Iterator, List, Mapping, Optional


class MessageBag:
    """Ordered mapping from field name to its list of messages.

    A bag is treated as a value by the entity: when errors are superseded
    the entity swaps in a new bag instead of clearing the old one, so a
    reference held elsewhere keeps its snapshot.
    """

    def __init__(self, messages: Optional[Mapping[str, List[str]]] = None):
        self._messages: Dict[str, List[str]] = {}
        for key, values in (messages or {}).items():
            if isinstance(values, str):
                values = [values]
            for message in values:
                self.add(key, message)

    def add(self, key: str, message: str) -> "MessageBag":
        """Add a message for a key, ignoring exact duplicates."""
        bucket = self._messages.setdefault(key, [])
        if message not in bucket:
            bucket.append(message)
        return self

    def merge(self, other: "MessageBag | Mapping[str, List[str]]") -> "MessageBag":
        """Add every message of another bag or mapping."""
        items = other.to_dict() if isinstance(other, MessageBag) else other
        for key, values in items.items():
            for message in values:
                self.add(key, message)
        return self

    def has(self, key: str) -> bool:
        return bool(self._messages.get(key))

    def first(self, key: Optional[str] = None) -> str:
        """First message for a key, or the first message overall.

        Returns an empty string when there is none.
        """
        messages = self.all() if key is None else self.get(key)
        return messages[0] if messages else ""

    def get(self, key: str) -> List[str]:
        return list(self._messages.get(key, []))

    def all(self) -> List[str]:
        """Every message, flattened in insertion order."""
        return [message for messages in self._messages.values() for message in messages]

    def keys(self) -> List[str]:
        return list(self._messages.keys())

    def count(self) -> int:
        """Total number of messages."""
        return sum(len(messages) for messages in self._messages.values())

    def is_empty(self) -> bool:
        return self.count() == 0

    def any(self) -> bool:
        return not self.is_empty()

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: list(messages) for key, messages in self._messages.items()}

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        # A bag is always a real object; emptiness is asked explicitly
        return True

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MessageBag):
            return self.to_dict() == other.to_dict()
        if isinstance(other, dict):
            return self.to_dict() == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"MessageBag({self._messages!r})"
