"""Utility helpers for ardent."""

from ardent.utils.text import camel, ends_with, plural, snake, studly

__all__ = [
    "camel",
    "ends_with",
    "plural",
    "snake",
    "studly",
]
