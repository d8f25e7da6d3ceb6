"""
Response Envelopes

Every HTTP response body is one of these two shapes.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from finance_control.errors import FieldError
from finance_control.models.common import ApiModel, utc_now


class SuccessResponse(ApiModel):
    """{success, data, message, timestamp}"""

    success: bool = True
    data: Any = None
    message: str = "OK"
    timestamp: datetime = Field(default_factory=utc_now)


class ErrorResponse(ApiModel):
    """{error, message, path, timestamp, validationErrors?}"""

    error: str = Field(..., description="Error category, e.g. VALIDATION_ERROR")
    reason: Optional[str] = Field(
        default=None,
        description="Specific violation, e.g. PERCENTAGE_MISMATCH"
    )
    message: str
    path: str
    timestamp: datetime = Field(default_factory=utc_now)
    validation_errors: Optional[list[FieldError]] = None
