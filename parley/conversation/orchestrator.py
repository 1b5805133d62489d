"""Conversation orchestrator.

Turns one inbound user message into an assistant response:

1. Validate the message and session id.
2. Record the user turn.
3. Build the prompt: system preamble plus the most recent
   ``max_context_messages`` turns, oldest first. Older turns stay in the
   store; they are only left out of the prompt.
4. Call the completion provider under a timeout. The store lock is never
   held across this call.
5. Record the assistant turn and return the response.

Concurrent turns for the same session are not serialized end to end. Two
overlapping calls may each build their prompt before the other's assistant
turn lands, and assistant turns are recorded in completion order.
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from datetime import datetime

from opentelemetry.trace import SpanKind

from parley.config.settings import Settings
from parley.conversation.exceptions import CompletionFailedError, InvalidInputError
from parley.conversation.models import (
    ChatContext,
    ChatHistoryPage,
    ChatResponse,
    ResponseMetadata,
    Role,
    Turn,
    utc_now,
)
from parley.conversation.store import SessionStore
from parley.observability.logging import get_logger
from parley.observability.metrics import (
    COMPLETION_FAILURES,
    COMPLETION_LATENCY,
    LLM_TOKENS,
)
from parley.observability.tracing import create_span
from parley.providers.llm.base import LLMMessage, LLMProvider, ProviderError

logger = get_logger(__name__)

MIN_PAGE_SIZE = 1
DEFAULT_PAGE_SIZE = 50


class ConversationOrchestrator:
    """Maintains session history around calls to the completion provider."""

    def __init__(
        self,
        store: SessionStore,
        provider: LLMProvider,
        *,
        system_prompt: str,
        max_context_messages: int = 10,
        max_output_tokens: int = 1000,
        temperature: float = 0.7,
        completion_timeout: float = 60.0,
        max_page_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Session history store
            provider: Completion provider
            system_prompt: Preamble sent as the first prompt message
            max_context_messages: History turns included in each prompt
            max_output_tokens: Generation limit passed to the provider
            temperature: Sampling temperature passed to the provider
            completion_timeout: Seconds before a completion is abandoned
            max_page_size: Upper bound for history page requests
            clock: Source of response timestamps
        """
        if max_context_messages < 0:
            raise ValueError("max_context_messages must not be negative")
        self._store = store
        self._provider = provider
        self._system_prompt = system_prompt
        self._max_context_messages = max_context_messages
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._completion_timeout = completion_timeout
        self._max_page_size = max_page_size
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: SessionStore,
        provider: LLMProvider,
    ) -> "ConversationOrchestrator":
        """Build an orchestrator from the conversation and provider settings."""
        conversation = settings.conversation
        llm = settings.providers.llm
        return cls(
            store,
            provider,
            system_prompt=conversation.system_prompt,
            max_context_messages=conversation.max_context_messages,
            max_output_tokens=llm.max_output_tokens,
            temperature=llm.temperature,
            completion_timeout=llm.timeout,
            max_page_size=conversation.max_history_page_size,
        )

    def build_prompt(self, history: Sequence[Turn]) -> list[LLMMessage]:
        """Assemble the preamble and the trailing context window."""
        window = history[-self._max_context_messages :] if self._max_context_messages else []
        messages = [LLMMessage(role="system", content=self._system_prompt)]
        messages.extend(LLMMessage(role=turn.role.value, content=turn.content) for turn in window)
        return messages

    async def respond(
        self,
        session_id: str,
        user_message: str,
        context: ChatContext | None = None,
    ) -> ChatResponse:
        """Process one user message and return the assistant's reply.

        Args:
            session_id: Caller-supplied session key
            user_message: Text of the user's message
            context: Optional caller context, used for logging only

        Returns:
            ChatResponse with the generated text and token usage

        Raises:
            InvalidInputError: Blank message or session id
            CompletionFailedError: Provider error or timeout. The user turn
                remains in history.
            asyncio.CancelledError: The caller was cancelled before the
                completion arrived. No assistant turn is recorded.
        """
        if not session_id or not session_id.strip():
            raise InvalidInputError("Session id is required")
        if not user_message or not user_message.strip():
            raise InvalidInputError("Message cannot be empty")

        log = logger.bind(session_id=session_id)
        log.info(
            "turn_started",
            message_length=len(user_message),
            user_id=context.user_id if context else None,
            client_type=context.client_type if context else None,
        )

        await self._store.append_turn(session_id, Turn(role=Role.USER, content=user_message))
        history = await self._store.get_history(session_id)
        prompt = self.build_prompt(history)

        provider_name = self._provider.provider_name
        start = time.perf_counter()
        try:
            with create_span(
                "parley.completion",
                kind=SpanKind.CLIENT,
                attributes={
                    "parley.session_id": session_id,
                    "parley.llm.provider": provider_name,
                    "parley.prompt_messages": len(prompt),
                },
            ):
                async with asyncio.timeout(self._completion_timeout):
                    completion = await self._provider.generate(
                        prompt,
                        max_tokens=self._max_output_tokens,
                        temperature=self._temperature,
                    )
        except TimeoutError as e:
            COMPLETION_FAILURES.labels(provider=provider_name, reason="timeout").inc()
            log.error("completion_timed_out", timeout_seconds=self._completion_timeout)
            raise CompletionFailedError(session_id, "Completion timed out") from e
        except ProviderError as e:
            COMPLETION_FAILURES.labels(provider=provider_name, reason=type(e).__name__).inc()
            log.error("completion_failed", error=str(e), error_type=type(e).__name__)
            raise CompletionFailedError(session_id, "Completion provider failed") from e
        except asyncio.CancelledError:
            COMPLETION_FAILURES.labels(provider=provider_name, reason="cancelled").inc()
            log.info("turn_cancelled")
            raise
        finally:
            COMPLETION_LATENCY.labels(provider=provider_name).observe(time.perf_counter() - start)

        # Once a completion is in hand it is recorded even if the caller is
        # cancelled meanwhile.
        await asyncio.shield(
            self._store.append_turn(session_id, Turn(role=Role.ASSISTANT, content=completion.content))
        )

        tokens_used = completion.usage.total_tokens if completion.usage else None
        if tokens_used:
            LLM_TOKENS.labels(provider=provider_name, model=completion.model).inc(tokens_used)

        log.info(
            "turn_completed",
            prompt_messages=len(prompt),
            response_length=len(completion.content),
            tokens_used=tokens_used,
        )

        return ChatResponse(
            message=completion.content,
            session_id=session_id,
            timestamp=self._clock(),
            metadata=ResponseMetadata(tokens_used=tokens_used, model=completion.model),
        )

    async def get_history_page(
        self, session_id: str, limit: int = DEFAULT_PAGE_SIZE
    ) -> ChatHistoryPage:
        """Return the last ``limit`` turns and the retained total.

        ``limit`` is clamped to ``1..max_page_size``. An unseen session yields
        an empty page with ``total_count == 0`` and is not created.
        """
        limit = max(MIN_PAGE_SIZE, min(limit, self._max_page_size))
        if await self._store.count_messages(session_id) == 0:
            return ChatHistoryPage(session_id=session_id)

        history = await self._store.get_history(session_id)
        logger.debug(
            "history_page_requested",
            session_id=session_id,
            limit=limit,
            total_count=len(history),
        )
        return ChatHistoryPage(
            session_id=session_id,
            messages=history[-limit:],
            total_count=len(history),
        )
