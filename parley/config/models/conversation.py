"""Conversation state and context window configuration."""

from pydantic import BaseModel, Field, model_validator

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about a SaaS application. "
    "Provide clear, accurate, and helpful responses based on the documentation "
    "you have been trained on."
)


class ConversationConfig(BaseModel):
    """Limits applied to per-session history and to the prompt window."""

    max_history_turns: int = Field(
        default=50,
        ge=1,
        description="Maximum turns retained per session (oldest evicted first)",
    )
    max_context_messages: int = Field(
        default=10,
        ge=0,
        description="Maximum history turns sent to the model per request",
    )
    session_timeout_minutes: int = Field(
        default=30,
        ge=0,
        description="Idle minutes before a session is swept (0 disables)",
    )
    sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="How often the idle session sweeper runs",
    )
    max_history_page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Upper bound for history page requests",
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        min_length=1,
        description="Preamble sent as the first message of every prompt",
    )

    @model_validator(mode="after")
    def check_context_within_history(self) -> "ConversationConfig":
        """Context window cannot be wider than what is retained."""
        if self.max_context_messages > self.max_history_turns:
            raise ValueError(
                "max_context_messages cannot exceed max_history_turns "
                f"({self.max_context_messages} > {self.max_history_turns})"
            )
        return self
