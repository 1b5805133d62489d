"""Error response models for consistent API error handling."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from parley.conversation.models import utc_now


class ErrorCode(str, Enum):
    """Machine-readable error identifiers returned in ``ErrorResponse.error``."""

    INVALID_REQUEST = "InvalidRequest"
    """Request validation failed (blank message, bad limit, malformed JSON)."""

    NOT_FOUND = "NotFound"
    """The session has no retained messages."""

    INTERNAL_ERROR = "InternalError"
    """Completion failed or an unexpected error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information for validation failures."""

    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": "InvalidRequest",
            "message": "Message cannot be empty",
            "timestamp": "2025-01-01T12:00:00Z"
        }
    """

    error: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None
    timestamp: datetime = Field(default_factory=utc_now)
