"""Base error classes with structured error context.

This module provides the foundation for the error handling system,
including structured error types and error context.
"""

import logging
import traceback
from datetime import datetime
from typing import Any, TYPE_CHECKING

from .models import (
    ConfigurationErrorContext,
    ErrorContextData,
    LookupErrorContext,
    ValidationErrorDetail,
)

if TYPE_CHECKING:
    from ardent.core.validation.message_bag import MessageBag

logger = logging.getLogger(__name__)


class ErrorContext:
    """Error context with structured information.

    This class provides:
    1. Structured context information for errors
    2. Clean serialization for logging and reporting
    3. Strict typing with Pydantic models
    """

    def __init__(self, context_data: ErrorContextData):
        """Initialize error context.

        Args:
            context_data: Required error context data
        """
        self._data = context_data

    @classmethod
    def create(
        cls, model_name: str, error_type: str, error_location: str, component: str, operation: str
    ) -> "ErrorContext":
        """Create a new error context with required data.

        Args:
            model_name: Name of the model type involved
            error_type: Type of error
            error_location: Location in code
            component: Component raising error
            operation: Operation being performed

        Returns:
            New ErrorContext instance
        """
        context_data = ErrorContextData(
            model_name=model_name,
            error_type=error_type,
            error_location=error_location,
            component=component,
            operation=operation,
        )
        return cls(context_data)

    @property
    def data(self) -> ErrorContextData:
        """Get the context data."""
        return self._data

    @property
    def timestamp(self) -> datetime:
        """Get the context creation timestamp."""
        return self._data.timestamp

    def __str__(self) -> str:
        return f"ErrorContext({self._data.model_dump()})"


class BaseError(Exception):
    """Base class for all ardent errors.

    This class provides:
    1. Structured error information with context
    2. Clean serialization for logging and reporting
    3. Cause tracking for nested errors
    """

    def __init__(self, message: str, context: ErrorContext, cause: Exception | None = None):
        """Initialize error.

        Args:
            message: Error message
            context: Required error context
            cause: Optional cause exception
        """
        self.message = message
        self.context = context
        self.cause = cause
        self.timestamp = datetime.now()
        self.traceback = self._capture_traceback()

        super().__init__(message)

    def _capture_traceback(self) -> str:
        return traceback.format_exc()

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Dictionary representation of error
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.data.model_dump(),
            "cause": str(self.cause) if self.cause else None,
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        cause_str = f" (caused by: {self.cause})" if self.cause else ""
        return f"{self.__class__.__name__}: {self.message}{cause_str}"


class ConfigurationError(BaseError):
    """Error raised when a declaration or runtime configuration is invalid.

    Raised for malformed relation descriptors, unknown relation names and
    missing collaborators. Never retried.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext,
        config_context: ConfigurationErrorContext,
        cause: Exception | None = None,
    ):
        """Initialize configuration error.

        Args:
            message: Error message
            context: Required error context
            config_context: Required configuration error context
            cause: Optional cause exception
        """
        self.config_context = config_context
        super().__init__(message, context, cause)


class InvalidEntityError(BaseError):
    """Error raised when an entity fails validation in throw mode.

    The entity and its message bag travel with the error so callers can
    decide how to recover.
    """

    def __init__(self, entity: Any, context: ErrorContext | None = None, cause: Exception | None = None):
        """Initialize invalid entity error.

        Args:
            entity: The entity that failed validation
            context: Optional error context, built from the entity when absent
            cause: Optional cause exception
        """
        self.entity = entity
        self.errors: "MessageBag" = entity.errors()
        model_name = type(entity).__name__

        if context is None:
            context = ErrorContext.create(
                model_name=model_name,
                error_type="validation",
                error_location=f"{model_name}.validate",
                component="ardent",
                operation="validate",
            )

        super().__init__(f"Model '{model_name}' failed validation", context, cause)

    @property
    def validation_errors(self) -> list[ValidationErrorDetail]:
        """Field level errors as structured details."""
        return self.to_details()

    def to_details(self) -> list[ValidationErrorDetail]:
        """Flatten the message bag into validation error details."""
        details = []
        for field, messages in self.errors.to_dict().items():
            for message in messages:
                details.append(
                    ValidationErrorDetail(location=field, message=message, error_type="validation")
                )
        return details

    def __str__(self) -> str:
        base_str = super().__str__()
        details = self.to_details()
        if details:
            errors_str = "; ".join(f"{d.location}: {d.message}" for d in details[:3])
            if len(details) > 3:
                errors_str += f" (and {len(details) - 3} more)"
            return f"{base_str} - {errors_str}"
        return base_str


class ModelNotFoundError(BaseError):
    """Error raised when a lookup by primary key finds nothing."""

    def __init__(
        self,
        message: str,
        context: ErrorContext,
        lookup_context: LookupErrorContext,
        cause: Exception | None = None,
    ):
        self.lookup_context = lookup_context
        super().__init__(message, context, cause)


def configuration_error(
    message: str,
    model_name: str,
    operation: str,
    config_key: str,
    expected: str,
    actual: Any,
    section: str = "relations",
) -> ConfigurationError:
    """Build a ConfigurationError with both contexts filled in.

    Args:
        message: Error message
        model_name: Model type whose configuration is invalid
        operation: Operation being performed
        config_key: Offending configuration key
        expected: Description of what was expected
        actual: The value actually found
        section: Configuration section the key belongs to

    Returns:
        The error, ready to be raised
    """
    logger.debug(f"Configuration error on {model_name}.{config_key}: {message}")
    return ConfigurationError(
        message=message,
        context=ErrorContext.create(
            model_name=model_name,
            error_type="configuration",
            error_location=f"{model_name}.{section}.{config_key}",
            component=section,
            operation=operation,
        ),
        config_context=ConfigurationErrorContext(
            config_key=config_key,
            config_section=section,
            expected_type=expected,
            actual_value=repr(actual),
        ),
    )
