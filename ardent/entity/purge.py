"""Purge filters for attributes that must not reach storage.

A purge filter receives an attribute name and returns True to keep it.
Filters compose by logical AND: an attribute is persisted only when every
filter accepts it.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from ardent.core.settings.settings import ArdentSettings, get_settings
from ardent.utils.text import ends_with

PurgeFilter = Callable[[str], bool]


def default_purge_filters(settings: Optional[ArdentSettings] = None) -> List[PurgeFilter]:
    """Build the default filters from settings.

    They reject confirmation fields (``password_confirmation``) and the
    reserved form keys (``_method``, ``_token``).

    Args:
        settings: Settings to read, the global settings when None

    Returns:
        The filters, confirmation filter first
    """
    settings = settings or get_settings()
    suffixes = tuple(settings.purge_suffixes)
    reserved = frozenset(settings.purge_reserved_keys)

    def not_confirmation(key: str) -> bool:
        return not ends_with(key, suffixes)

    def not_reserved(key: str) -> bool:
        return key not in reserved

    return [not_confirmation, not_reserved]


def purge_attributes(attributes: Dict[str, Any], filters: Iterable[PurgeFilter]) -> Dict[str, Any]:
    """Keep the attributes every filter accepts, preserving order."""
    filters = list(filters)
    if not filters:
        return dict(attributes)
    return {key: value for key, value in attributes.items() if all(f(key) for f in filters)}
