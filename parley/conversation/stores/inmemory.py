"""In-memory implementation of SessionStore."""

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from parley.conversation.models import Turn, utc_now
from parley.conversation.store import SessionStore
from parley.observability.logging import get_logger
from parley.observability.metrics import (
    ACTIVE_SESSIONS,
    SESSIONS_EVICTED,
    TURNS_APPENDED,
    TURNS_EVICTED,
)

logger = get_logger(__name__)


@dataclass
class _SessionHistory:
    turns: deque[Turn]
    last_activity_at: datetime = field(default_factory=utc_now)


class InMemorySessionStore(SessionStore):
    """Process-local session store.

    A single asyncio.Lock guards the whole mapping, so calls for unrelated
    sessions share one short critical section. No call awaits anything
    while holding it. This coarse lock is the known scaling limit of the
    store; state is lost on restart.

    Each session's turns live in a ``deque(maxlen=max_history_turns)``, which
    appends first and then drops from the left, so the newest turn is never
    the one evicted.
    """

    def __init__(
        self,
        max_history_turns: int = 50,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize empty storage.

        Args:
            max_history_turns: Turns retained per session, at least 1
            clock: Source of the current time, for idle tracking
        """
        if max_history_turns < 1:
            raise ValueError("max_history_turns must be at least 1")
        self._max_history_turns = max_history_turns
        self._clock = clock
        self._sessions: dict[str, _SessionHistory] = {}
        self._lock = asyncio.Lock()

    @property
    def max_history_turns(self) -> int:
        """Capacity of each session's history."""
        return self._max_history_turns

    def _get_or_create(self, session_id: str) -> _SessionHistory:
        history = self._sessions.get(session_id)
        if history is None:
            history = _SessionHistory(
                turns=deque(maxlen=self._max_history_turns),
                last_activity_at=self._clock(),
            )
            self._sessions[session_id] = history
            ACTIVE_SESSIONS.set(len(self._sessions))
            logger.debug("session_created", session_id=session_id)
        return history

    async def get_history(self, session_id: str) -> list[Turn]:
        """Return a copy of the session's turns, oldest first."""
        async with self._lock:
            return list(self._get_or_create(session_id).turns)

    async def append_turn(self, session_id: str, turn: Turn) -> None:
        """Append a turn, evicting the oldest when at capacity."""
        async with self._lock:
            history = self._get_or_create(session_id)
            evicting = len(history.turns) == self._max_history_turns
            history.turns.append(turn)
            history.last_activity_at = self._clock()

        TURNS_APPENDED.labels(role=turn.role.value).inc()
        if evicting:
            TURNS_EVICTED.inc()
            logger.debug(
                "session_turn_evicted",
                session_id=session_id,
                max_history_turns=self._max_history_turns,
            )

    async def count_messages(self, session_id: str) -> int:
        """Return the number of retained turns (0 for unseen sessions)."""
        async with self._lock:
            history = self._sessions.get(session_id)
            return len(history.turns) if history else 0

    async def evict_idle(self, idle_for: timedelta) -> int:
        """Remove sessions whose last activity is older than ``idle_for``."""
        cutoff = self._clock() - idle_for
        async with self._lock:
            expired = [
                session_id
                for session_id, history in self._sessions.items()
                if history.last_activity_at < cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]
            remaining = len(self._sessions)

        ACTIVE_SESSIONS.set(remaining)
        if expired:
            SESSIONS_EVICTED.inc(len(expired))
            logger.info(
                "idle_sessions_evicted",
                evicted=len(expired),
                remaining=remaining,
            )
        return len(expired)
