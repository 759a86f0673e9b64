"""Strict Pydantic models for error handling.

No fallbacks, no defaults, no optional fields unless explicitly required.
"""

from datetime import datetime

from pydantic import Field

from ardent.core.models import StrictBaseModel


class ErrorContextData(StrictBaseModel):
    """Strict error context data model."""

    model_name: str = Field(..., description="Name of the model type where the error occurred")
    error_type: str = Field(..., description="Type of error")
    error_location: str = Field(..., description="Location in code where error occurred")
    timestamp: datetime = Field(default_factory=datetime.now, description="When error occurred")

    component: str = Field(..., description="Component that raised the error")
    operation: str = Field(..., description="Operation being performed")


class ValidationErrorDetail(StrictBaseModel):
    """Strict validation error detail."""

    location: str = Field(..., description="Field or location of validation error")
    message: str = Field(..., description="Validation error message")
    error_type: str = Field(..., description="Type of validation error")


class ConfigurationErrorContext(StrictBaseModel):
    """Strict configuration error context."""

    config_key: str = Field(..., description="Configuration key that failed")
    config_section: str = Field(..., description="Configuration section")
    expected_type: str = Field(..., description="Expected type of configuration")
    actual_value: str = Field(..., description="Actual value provided")


class LookupErrorContext(StrictBaseModel):
    """Strict record lookup error context."""

    table: str = Field(..., description="Table that was searched")
    key_name: str = Field(..., description="Primary key column")
    key_value: str = Field(..., description="Key value that was not found")
