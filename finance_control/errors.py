"""
Error Taxonomy

Every failure surfaced to a caller is one of four categories:
VALIDATION_ERROR, NOT_FOUND, CONFLICT or INTERNAL_ERROR.

A more specific `reason` (e.g. PERCENTAGE_MISMATCH) travels alongside the
category so callers can react to individual invariant violations.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorCode(str, Enum):
    """Top-level error categories."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorReason(str, Enum):
    """Specific invariant or input violations."""
    MISSING_RESPONSIBILITY = "MISSING_RESPONSIBILITY"
    PERCENTAGE_MISMATCH = "PERCENTAGE_MISMATCH"
    INVALID_PERCENTAGE = "INVALID_PERCENTAGE"
    MISSING_RESPONSIBLE = "MISSING_RESPONSIBLE"
    UNSUPPORTED_METADATA_TYPE = "UNSUPPORTED_METADATA_TYPE"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    INVALID_FIELD = "INVALID_FIELD"


class FieldError(BaseModel):
    """Field-level detail attached to a validation error."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field: str = Field(..., description="Name of the offending field or parameter")
    message: str = Field(..., description="Human-readable description")
    rejected_value: Optional[Any] = Field(
        default=None,
        description="The value that was rejected, if any"
    )


class FinanceControlError(Exception):
    """Base exception for all domain errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, reason: Optional[ErrorReason] = None):
        self.message = message
        self.reason = reason
        super().__init__(message)


class ValidationError(FinanceControlError):
    """Malformed input or a violated invariant. Nothing was written."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        reason: Optional[ErrorReason] = None,
        field_errors: Optional[list[FieldError]] = None,
    ):
        super().__init__(message, reason)
        self.field_errors = field_errors or []

    @classmethod
    def for_field(
        cls,
        field: str,
        message: str,
        rejected_value: Any = None,
        reason: Optional[ErrorReason] = None,
    ) -> "ValidationError":
        """Build an error describing a single field."""
        return cls(
            message,
            reason=reason,
            field_errors=[
                FieldError(field=field, message=message, rejected_value=rejected_value)
            ],
        )


class NotFoundError(FinanceControlError):
    """A referenced entity does not exist (or is not owned by the caller)."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class ConflictError(FinanceControlError):
    """A uniqueness rule on a name-like field was violated."""

    code = ErrorCode.CONFLICT

    def __init__(self, entity: str, field: str, value: Any):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field} '{value}' already exists")


class InternalError(FinanceControlError):
    """Unexpected failure."""

    code = ErrorCode.INTERNAL_ERROR
