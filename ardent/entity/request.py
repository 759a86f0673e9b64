"""Request input adapters.

Entities hydrate from the current request's input and flash it back to
the session when validation fails. NullRequest is used when no request is
bound; ArrayRequest wraps plain mappings, e.g. parsed form data.
"""

from typing import Any, Dict, MutableMapping, Optional

OLD_INPUT_KEY = "_old_input"


class NullRequest:
    """Request with no input and no session."""

    def all(self) -> Dict[str, Any]:
        return {}

    def flash(self) -> None:
        return None

    def has_session(self) -> bool:
        return False


class ArrayRequest:
    """Request backed by an input mapping and an optional session mapping."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, session: Optional[MutableMapping[str, Any]] = None):
        """Initialize the request.

        Args:
            data: Input values
            session: Session store; flashing is a no-op without one
        """
        self.data = dict(data or {})
        self.session = session

    def all(self) -> Dict[str, Any]:
        return dict(self.data)

    def flash(self) -> None:
        """Stash the input in the session for the next request."""
        if self.session is not None:
            self.session[OLD_INPUT_KEY] = dict(self.data)

    def has_session(self) -> bool:
        return self.session is not None

    def old(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Read flashed input."""
        old_input = (self.session or {}).get(OLD_INPUT_KEY, {})
        if key is None:
            return dict(old_input)
        return old_input.get(key, default)
