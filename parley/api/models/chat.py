"""Chat request and response models.

Field names are camelCase on the wire.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from parley.conversation.models import (
    ChatContext,
    ChatHistoryPage,
    ChatResponse,
    Turn,
)


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatContextModel(CamelModel):
    """Optional client context sent with a message."""

    user_id: str | None = None
    """User identifier."""

    client_type: str | None = None
    """Type of client application (web, teams, mobile)."""

    metadata: dict[str, Any] | None = None
    """Additional metadata."""

    def to_domain(self) -> ChatContext:
        return ChatContext(
            user_id=self.user_id,
            client_type=self.client_type,
            metadata=self.metadata,
        )


class ChatRequest(CamelModel):
    """Request body for POST /api/chat/message."""

    message: str
    """The user's message to the chatbot."""

    session_id: str
    """Caller-chosen session identifier."""

    context: ChatContextModel | None = None
    """Additional context information."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "message": "How do I reset my password?",
                "sessionId": "sess_abc123",
                "context": {"userId": "u-42", "clientType": "web"},
            }
        },
    )


class ResponseMetadataModel(CamelModel):
    """Metadata for a chat response."""

    tokens_used: int | None = None
    model: str | None = None


class ChatResponseModel(CamelModel):
    """Response body for POST /api/chat/message."""

    message: str
    session_id: str
    timestamp: datetime
    metadata: ResponseMetadataModel | None = None

    @classmethod
    def from_domain(cls, response: ChatResponse) -> "ChatResponseModel":
        return cls(
            message=response.message,
            session_id=response.session_id,
            timestamp=response.timestamp,
            metadata=ResponseMetadataModel(
                tokens_used=response.metadata.tokens_used,
                model=response.metadata.model,
            ),
        )


class ChatMessage(CamelModel):
    """A single message in a session's history."""

    role: str
    content: str
    timestamp: datetime

    @classmethod
    def from_turn(cls, turn: Turn) -> "ChatMessage":
        return cls(role=turn.role.value, content=turn.content, timestamp=turn.created_at)


class ChatHistoryResponse(CamelModel):
    """Response body for GET /api/chat/sessions/{sessionId}/history."""

    session_id: str
    messages: list[ChatMessage]
    total_count: int

    @classmethod
    def from_domain(cls, page: ChatHistoryPage) -> "ChatHistoryResponse":
        return cls(
            session_id=page.session_id,
            messages=[ChatMessage.from_turn(turn) for turn in page.messages],
            total_count=page.total_count,
        )
