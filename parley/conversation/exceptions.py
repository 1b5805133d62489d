"""Errors raised by the conversation core."""


class ConversationError(Exception):
    """Base exception for conversation processing errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(ConversationError):
    """Empty message or session identifier. Nothing was recorded."""

    pass


class CompletionFailedError(ConversationError):
    """The completion provider failed, timed out, or returned nothing usable.

    The user turn stays in history; no assistant turn is recorded.
    """

    def __init__(self, session_id: str, message: str) -> None:
        super().__init__(message)
        self.session_id = session_id
