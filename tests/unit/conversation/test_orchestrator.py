"""Tests for ConversationOrchestrator."""

import asyncio
from datetime import UTC, datetime
from typing import Any

import pytest

from parley.config.settings import Settings
from parley.conversation import (
    ChatContext,
    CompletionFailedError,
    ConversationOrchestrator,
    InMemorySessionStore,
    InvalidInputError,
    Role,
    Turn,
)
from parley.providers.llm import LLMMessage, LLMResponse, MockLLMProvider, ProviderError, RateLimitError

SYSTEM_PROMPT = "You are a test assistant."


class GatedProvider(MockLLMProvider):
    """Mock provider that holds every call until the gate opens."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.gate = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, messages: list[LLMMessage], **kwargs: Any) -> LLMResponse:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gate.wait()
        finally:
            self.in_flight -= 1
        return await super().generate(messages, **kwargs)


class SlowAssistantStore(InMemorySessionStore):
    """Store whose assistant appends wait for an explicit release."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.assistant_append_started = asyncio.Event()
        self.release = asyncio.Event()

    async def append_turn(self, session_id: str, turn: Turn) -> None:
        if turn.role == Role.ASSISTANT:
            self.assistant_append_started.set()
            await self.release.wait()
        await super().append_turn(session_id, turn)


async def wait_until(predicate, attempts: int = 100) -> None:
    """Yield to the loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore(max_history_turns=50)


@pytest.fixture
def provider() -> MockLLMProvider:
    return MockLLMProvider(default_response="Hi there", default_model="test-model")


def make_orchestrator(
    store: InMemorySessionStore, provider: MockLLMProvider, **overrides: Any
) -> ConversationOrchestrator:
    options: dict[str, Any] = {
        "system_prompt": SYSTEM_PROMPT,
        "max_context_messages": 10,
        "max_output_tokens": 1000,
        "temperature": 0.7,
        "completion_timeout": 5.0,
    }
    options.update(overrides)
    return ConversationOrchestrator(store, provider, **options)


@pytest.fixture
def orchestrator(store, provider) -> ConversationOrchestrator:
    return make_orchestrator(store, provider)


async def seed(store: InMemorySessionStore, session_id: str, count: int) -> list[Turn]:
    turns = []
    for i in range(count):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        turn = Turn(role=role, content=f"turn-{i}")
        await store.append_turn(session_id, turn)
        turns.append(turn)
    return turns


class TestRespond:
    """Tests for the turn lifecycle."""

    @pytest.mark.asyncio
    async def test_first_message_scenario(self, orchestrator, store):
        """Fresh session: Hello -> Hi there, history holds both turns."""
        response = await orchestrator.respond("s1", "Hello")

        assert response.message == "Hi there"
        assert response.session_id == "s1"

        history = await store.get_history("s1")
        assert [(t.role, t.content) for t in history] == [
            (Role.USER, "Hello"),
            (Role.ASSISTANT, "Hi there"),
        ]

        page = await orchestrator.get_history_page("s1", 50)
        assert page.total_count == 2

    @pytest.mark.asyncio
    async def test_reports_token_usage(self, orchestrator):
        """Response metadata carries the provider's token count and model."""
        response = await orchestrator.respond("s1", "Hello")

        assert response.metadata.tokens_used is not None
        assert response.metadata.tokens_used > 0
        assert response.metadata.model == "test-model"

    @pytest.mark.asyncio
    async def test_usage_absent_is_none(self, store):
        """Missing usage from the provider leaves tokens_used unset."""

        class NoUsageProvider(MockLLMProvider):
            async def generate(self, messages, **kwargs):
                response = await super().generate(messages, **kwargs)
                return response.model_copy(update={"usage": None})

        orchestrator = make_orchestrator(store, NoUsageProvider())
        response = await orchestrator.respond("s1", "Hello")

        assert response.metadata.tokens_used is None

    @pytest.mark.asyncio
    async def test_timestamp_from_clock(self, store, provider):
        """Response timestamp comes from the injected clock."""
        fixed = datetime(2025, 6, 1, 9, 30, tzinfo=UTC)
        orchestrator = make_orchestrator(store, provider, clock=lambda: fixed)

        response = await orchestrator.respond("s1", "Hello")

        assert response.timestamp == fixed

    @pytest.mark.asyncio
    async def test_passes_generation_parameters(self, store, provider):
        """max_output_tokens and temperature come from configuration."""
        orchestrator = make_orchestrator(store, provider, max_output_tokens=256, temperature=0.2)

        await orchestrator.respond("s1", "Hello")

        call = provider.call_history[0]
        assert call["max_tokens"] == 256
        assert call["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_context_is_optional_metadata(self, orchestrator, store):
        """Caller context does not change what is recorded."""
        context = ChatContext(user_id="u-1", client_type="teams", metadata={"locale": "en"})

        await orchestrator.respond("s1", "Hello", context)

        assert await store.count_messages("s1") == 2

    @pytest.mark.asyncio
    async def test_previous_turns_become_context(self, orchestrator, provider):
        """The second turn's prompt includes the first exchange."""
        provider.set_response("Hello", "Hi there")
        provider.set_response("How are you?", "Fine")

        await orchestrator.respond("s1", "Hello")
        await orchestrator.respond("s1", "How are you?")

        prompt = provider.call_history[1]["messages"]
        assert [(m.role, m.content) for m in prompt] == [
            ("system", SYSTEM_PROMPT),
            ("user", "Hello"),
            ("assistant", "Hi there"),
            ("user", "How are you?"),
        ]


class TestValidation:
    """Tests for input rejection."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["", "   ", "\n\t"])
    async def test_blank_message_rejected(self, orchestrator, store, provider, message):
        """Blank messages raise InvalidInputError and record nothing."""
        with pytest.raises(InvalidInputError):
            await orchestrator.respond("s1", message)

        assert await store.count_messages("s1") == 0
        assert provider.call_history == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("session_id", ["", "  "])
    async def test_blank_session_rejected(self, orchestrator, store, session_id):
        """Blank session ids raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            await orchestrator.respond(session_id, "Hello")

        assert await store.count_messages(session_id) == 0


class TestWindowing:
    """Tests for prompt construction."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("existing", "window", "expected_history"),
        [(0, 10, 1), (3, 10, 4), (9, 10, 10), (20, 10, 10), (20, 3, 3)],
    )
    async def test_prompt_holds_min_of_history_and_window(
        self, store, provider, existing, window, expected_history
    ):
        """Prompt is the preamble plus min(H, M) turns, oldest first."""
        seeded = await seed(store, "s1", existing)
        orchestrator = make_orchestrator(store, provider, max_context_messages=window)

        await orchestrator.respond("s1", "latest")

        prompt = provider.call_history[0]["messages"]
        assert prompt[0].role == "system"
        assert prompt[0].content == SYSTEM_PROMPT
        assert len(prompt) == expected_history + 1

        expected = [t.content for t in seeded] + ["latest"]
        assert [m.content for m in prompt[1:]] == expected[-expected_history:]

    @pytest.mark.asyncio
    async def test_dropped_turns_stay_in_store(self, store, provider):
        """Turns outside the window remain retained."""
        await seed(store, "s1", 12)
        orchestrator = make_orchestrator(store, provider, max_context_messages=4)

        await orchestrator.respond("s1", "latest")

        assert await store.count_messages("s1") == 14

    def test_zero_window_sends_only_preamble(self, store, provider):
        """max_context_messages=0 sends just the system message."""
        orchestrator = make_orchestrator(store, provider, max_context_messages=0)
        history = [Turn(role=Role.USER, content="hi")]

        prompt = orchestrator.build_prompt(history)

        assert [m.role for m in prompt] == ["system"]

    def test_negative_window_rejected(self, store, provider):
        with pytest.raises(ValueError):
            make_orchestrator(store, provider, max_context_messages=-1)


class TestCompletionFailure:
    """Tests for provider failures."""

    @pytest.mark.asyncio
    async def test_provider_error_records_no_assistant_turn(self, orchestrator, store, provider):
        """A failed completion leaves only the user turn."""
        provider.set_error(ProviderError("upstream exploded"))

        with pytest.raises(CompletionFailedError) as exc_info:
            await orchestrator.respond("s1", "Hello")

        assert isinstance(exc_info.value.__cause__, ProviderError)
        assert exc_info.value.session_id == "s1"
        history = await store.get_history("s1")
        assert [(t.role, t.content) for t in history] == [(Role.USER, "Hello")]

    @pytest.mark.asyncio
    async def test_provider_subclass_errors_wrapped(self, orchestrator, provider):
        """Specific provider errors surface as CompletionFailedError."""
        provider.set_error(RateLimitError("slow down"))

        with pytest.raises(CompletionFailedError):
            await orchestrator.respond("s1", "Hello")

    @pytest.mark.asyncio
    async def test_timeout_records_no_assistant_turn(self, store):
        """A completion exceeding the timeout fails without an assistant turn."""
        provider = MockLLMProvider(delay=1.0)
        orchestrator = make_orchestrator(store, provider, completion_timeout=0.01)

        with pytest.raises(CompletionFailedError) as exc_info:
            await orchestrator.respond("s1", "Hello")

        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert await store.count_messages("s1") == 1

    @pytest.mark.asyncio
    async def test_retry_sees_unanswered_user_turn(self, orchestrator, store, provider):
        """The unanswered user turn is context for the retried request."""
        provider.set_error(ProviderError("boom"))
        with pytest.raises(CompletionFailedError):
            await orchestrator.respond("s1", "Hello")

        provider.set_error(None)
        await orchestrator.respond("s1", "Hello again")

        prompt = provider.call_history[-1]["messages"]
        assert [m.content for m in prompt[1:]] == ["Hello", "Hello again"]
        assert await store.count_messages("s1") == 3


class TestCancellation:
    """Tests for caller cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_during_completion_records_no_assistant_turn(self, store):
        """Cancelling while the provider is working leaves only the user turn."""
        provider = GatedProvider()
        orchestrator = make_orchestrator(store, provider)

        task = asyncio.create_task(orchestrator.respond("s1", "Hello"))
        await wait_until(lambda: provider.in_flight == 1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        history = await store.get_history("s1")
        assert [t.role for t in history] == [Role.USER]

    @pytest.mark.asyncio
    async def test_cancel_after_completion_still_records_assistant_turn(self, provider):
        """Once the completion is in hand, cancellation cannot drop it."""
        store = SlowAssistantStore()
        orchestrator = make_orchestrator(store, provider)

        task = asyncio.create_task(orchestrator.respond("s1", "Hello"))
        await asyncio.wait_for(store.assistant_append_started.wait(), timeout=1.0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        store.release.set()
        await wait_until(lambda: len(store._sessions["s1"].turns) == 2)

        history = await store.get_history("s1")
        assert [(t.role, t.content) for t in history] == [
            (Role.USER, "Hello"),
            (Role.ASSISTANT, "Hi there"),
        ]


class TestConcurrentTurns:
    """Tests for overlapping requests."""

    @pytest.mark.asyncio
    async def test_same_session_turns_may_overlap(self, store):
        """Two turns on one session can both be waiting on the provider."""
        provider = GatedProvider(default_response="ok")
        orchestrator = make_orchestrator(store, provider)

        first = asyncio.create_task(orchestrator.respond("s1", "one"))
        second = asyncio.create_task(orchestrator.respond("s1", "two"))
        await wait_until(lambda: provider.in_flight == 2)

        assert provider.max_in_flight == 2

        provider.gate.set()
        await asyncio.gather(first, second)

        history = await store.get_history("s1")
        assert len(history) == 4
        assert [t.role for t in history[:2]] == [Role.USER, Role.USER]
        assert [t.role for t in history[2:]] == [Role.ASSISTANT, Role.ASSISTANT]

    @pytest.mark.asyncio
    async def test_other_sessions_not_blocked(self, store):
        """A pending completion on one session does not delay another."""
        slow = GatedProvider()
        orchestrator = make_orchestrator(store, slow)

        blocked = asyncio.create_task(orchestrator.respond("a", "waiting"))
        await wait_until(lambda: slow.in_flight == 1)

        fast = make_orchestrator(store, MockLLMProvider(default_response="done"))
        response = await fast.respond("b", "quick")

        assert response.message == "done"
        assert not blocked.done()
        assert await store.count_messages("a") == 1

        slow.gate.set()
        await blocked
        assert await store.count_messages("a") == 2


class TestHistoryPage:
    """Tests for get_history_page."""

    @pytest.mark.asyncio
    async def test_unseen_session(self, orchestrator):
        """Unseen session yields no messages and total 0."""
        page = await orchestrator.get_history_page("unseen", 50)

        assert page.session_id == "unseen"
        assert page.messages == []
        assert page.total_count == 0

    @pytest.mark.asyncio
    async def test_unseen_session_not_created(self, orchestrator, store):
        """Paging an unknown id leaves the store untouched."""
        await orchestrator.get_history_page("unseen", 50)

        assert "unseen" not in store._sessions

    @pytest.mark.asyncio
    async def test_returns_last_limit_turns(self, orchestrator, store):
        """Only the most recent turns are returned, total is retained count."""
        seeded = await seed(store, "s1", 8)

        page = await orchestrator.get_history_page("s1", 3)

        assert page.messages == seeded[-3:]
        assert page.total_count == 8

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("limit", "expected"), [(0, 1), (-5, 1), (500, 100)])
    async def test_limit_clamped(self, provider, limit, expected):
        """Out of range limits are clamped to 1..max_page_size."""
        store = InMemorySessionStore(max_history_turns=200)
        orchestrator = make_orchestrator(store, provider, max_page_size=100)
        await seed(store, "s1", 120)

        page = await orchestrator.get_history_page("s1", limit)

        assert len(page.messages) == expected
        assert page.total_count == 120

    @pytest.mark.asyncio
    async def test_total_count_after_eviction(self, provider):
        """total_count is the post-eviction count."""
        store = InMemorySessionStore(max_history_turns=4)
        orchestrator = make_orchestrator(store, provider, max_context_messages=4)
        for i in range(5):
            await orchestrator.respond("s1", f"m{i}")

        page = await orchestrator.get_history_page("s1", 50)

        assert page.total_count == 4
        assert len(page.messages) == 4


class TestFromSettings:
    """Tests for building from settings."""

    @pytest.mark.asyncio
    async def test_uses_configured_values(self, store, provider):
        settings = Settings(
            conversation={"max_context_messages": 2, "system_prompt": "Be brief."},
            providers={"llm": {"provider": "mock", "max_output_tokens": 42, "temperature": 0.1}},
        )
        orchestrator = ConversationOrchestrator.from_settings(settings, store, provider)
        await seed(store, "s1", 5)

        await orchestrator.respond("s1", "latest")

        call = provider.call_history[0]
        assert call["messages"][0].content == "Be brief."
        assert len(call["messages"]) == 3
        assert call["max_tokens"] == 42
        assert call["temperature"] == 0.1
