"""Validation message catalogs.

Catalogs are YAML files under ``ardent/lang/<locale>/validation.yaml``.
Additional files can be layered on top of a bundled catalog, later files
overriding earlier ones.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

logger = logging.getLogger(__name__)

LANG_DIR = Path(__file__).resolve().parent.parent.parent / "lang"
DEFAULT_LOCALE = "en"

_cache: Dict[str, Dict[str, Any]] = {}


class MessageCatalog:
    """Message lines for one locale."""

    def __init__(self, locale: str, lines: Dict[str, Any]):
        self.locale = locale
        self._lines = lines

    def line(self, rule: str, kind: Optional[str] = None) -> Optional[str]:
        """Get the line for a rule.

        Args:
            rule: Rule name
            kind: For size rules, one of numeric, string or array

        Returns:
            The message template or None when the catalog has no line
        """
        entry = self._lines.get(rule)
        if isinstance(entry, dict):
            if kind is None:
                return None
            return entry.get(kind)
        return entry

    def custom_line(self, attribute: str, rule: str) -> Optional[str]:
        """Get an attribute specific line from the ``custom`` section."""
        custom = self._lines.get("custom") or {}
        attribute_lines = custom.get(attribute) or {}
        return attribute_lines.get(rule)

    def attribute_label(self, attribute: str) -> Optional[str]:
        """Get a friendly label from the ``attributes`` section."""
        return (self._lines.get("attributes") or {}).get(attribute)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._lines)


def _read_lines(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_catalog(locale: str = DEFAULT_LOCALE, extra_files: Optional[Iterable[Path]] = None) -> MessageCatalog:
    """Load the catalog for a locale.

    Unknown locales fall back to the default locale with a warning.

    Args:
        locale: Locale name such as ``en`` or ``pt_br``
        extra_files: YAML files layered over the bundled lines

    Returns:
        The message catalog
    """
    locale = locale.replace("-", "_").lower()

    if locale not in _cache:
        path = LANG_DIR / locale / "validation.yaml"
        if not path.exists():
            logger.warning(f"No validation messages for locale '{locale}', using '{DEFAULT_LOCALE}'")
            path = LANG_DIR / DEFAULT_LOCALE / "validation.yaml"
        _cache[locale] = _read_lines(path)
        logger.debug(f"Loaded validation messages from {path}")

    lines = _cache[locale]
    for extra in extra_files or ():
        lines = _merge(lines, _read_lines(Path(extra)))

    return MessageCatalog(locale, lines)
