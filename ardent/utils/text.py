"""Text transformation utilities.

This module provides the naming helpers the mapper relies on for its
conventions: table names, foreign keys, morph columns and the camel-cased
keys used in relation tables.
"""

import re

_SNAKE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_WORD_SEPARATORS = re.compile(r"[\s\-_]+")


def snake(text: str, delimiter: str = "_") -> str:
    """Convert a string to snake case.

    Args:
        text: Text to convert, e.g. ``"LineItem"`` or ``"lineItem"``
        delimiter: Delimiter placed between words

    Returns:
        Snake cased text, e.g. ``"line_item"``
    """
    if not text:
        return ""

    text = _SNAKE_BOUNDARY.sub(delimiter, text.strip())
    text = _WORD_SEPARATORS.sub(delimiter, text)
    return text.lower()


def studly(text: str) -> str:
    """Convert a string to studly caps (``line_item`` -> ``LineItem``)."""
    words = _WORD_SEPARATORS.split(snake(text))
    return "".join(word[:1].upper() + word[1:] for word in words if word)


def camel(text: str) -> str:
    """Convert a string to camel case (``line_item`` -> ``lineItem``)."""
    value = studly(text)
    return value[:1].lower() + value[1:]


def plural(word: str) -> str:
    """Return a naive English plural of a word.

    Only the regular suffix rules are applied; irregular nouns are left to
    explicit ``table`` declarations.
    """
    if not word:
        return word

    lower = word.lower()
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower.endswith("y") and lower[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    return word + "s"


def ends_with(text: str, suffixes) -> bool:
    """Check whether text ends with any of the given suffixes."""
    if isinstance(suffixes, str):
        suffixes = (suffixes,)
    return any(suffix and text.endswith(suffix) for suffix in suffixes)
