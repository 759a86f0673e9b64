"""Structured error types for ardent."""

from ardent.core.errors.errors import (
    BaseError,
    ConfigurationError,
    ErrorContext,
    InvalidEntityError,
    ModelNotFoundError,
    configuration_error,
)
from ardent.core.errors.models import (
    ConfigurationErrorContext,
    ErrorContextData,
    LookupErrorContext,
    ValidationErrorDetail,
)

__all__ = [
    "BaseError",
    "ConfigurationError",
    "ConfigurationErrorContext",
    "ErrorContext",
    "ErrorContextData",
    "InvalidEntityError",
    "LookupErrorContext",
    "ModelNotFoundError",
    "ValidationErrorDetail",
    "configuration_error",
]
