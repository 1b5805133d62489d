"""Conversation domain models.

Turns are immutable once recorded. A session is nothing more than the
ordered sequence of its turns, keyed by a caller-supplied identifier.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Role(str, Enum):
    """Author of a recorded turn."""

    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """A single recorded message in a session's history."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(..., description="Who authored the turn")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(default_factory=utc_now, description="When recorded")


class ChatContext(BaseModel):
    """Optional caller context attached to an inbound message."""

    user_id: str | None = Field(default=None, description="User identifier")
    client_type: str | None = Field(
        default=None, description="Client application (web, teams, mobile)"
    )
    metadata: dict[str, Any] | None = Field(default=None, description="Additional metadata")


class ResponseMetadata(BaseModel):
    """Metadata reported with an assistant response."""

    tokens_used: int | None = Field(default=None, description="Total tokens consumed")
    model: str | None = Field(default=None, description="Model that produced the text")


class ChatResponse(BaseModel):
    """Result of a completed conversation turn."""

    message: str = Field(..., description="Assistant response text")
    session_id: str = Field(..., description="Session identifier")
    timestamp: datetime = Field(default_factory=utc_now, description="When generated")
    metadata: ResponseMetadata = Field(
        default_factory=ResponseMetadata, description="Response metadata"
    )


class ChatHistoryPage(BaseModel):
    """Most recent turns of a session plus the retained total."""

    session_id: str
    messages: list[Turn] = Field(default_factory=list)
    total_count: int = Field(default=0, description="Turns currently retained")
