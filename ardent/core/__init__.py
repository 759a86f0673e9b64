"""Core foundations: strict records, errors, events, settings and validation."""

from ardent.core.models import StrictBaseModel

__all__ = ["StrictBaseModel"]
