"""API exception hierarchy for consistent error handling.

All API exceptions inherit from ParleyAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from parley.api.models.errors import ErrorCode


class ParleyAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(ParleyAPIError):
    """Raised when request validation fails."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class SessionNotFoundError(ParleyAPIError):
    """Raised when a session has no retained messages."""

    status_code = 404
    error_code = ErrorCode.NOT_FOUND
