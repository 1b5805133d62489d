"""API request and response models."""

from parley.api.models.chat import (
    ChatContextModel,
    ChatHistoryResponse,
    ChatMessage,
    ChatRequest,
    ChatResponseModel,
    ResponseMetadataModel,
)
from parley.api.models.errors import ErrorCode, ErrorDetail, ErrorResponse
from parley.api.models.health import HealthResponse

__all__ = [
    "ChatContextModel",
    "ChatHistoryResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponseModel",
    "ResponseMetadataModel",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
