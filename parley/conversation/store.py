"""SessionStore abstract interface."""

from abc import ABC, abstractmethod
from datetime import timedelta

from parley.conversation.models import Turn


class SessionStore(ABC):
    """Abstract interface for per-session turn history.

    Sessions are get-or-create: referencing an unknown session id through
    ``get_history`` or ``append_turn`` creates it empty. Each session keeps
    at most a configured number of turns; appending beyond that drops the
    oldest turns first. Implementations must make every operation atomic
    with respect to the others.
    """

    @abstractmethod
    async def get_history(self, session_id: str) -> list[Turn]:
        """Return a copy of the session's turns, oldest first.

        Creates the session if it has not been seen before.
        """
        pass

    @abstractmethod
    async def append_turn(self, session_id: str, turn: Turn) -> None:
        """Append a turn, evicting from the front when over capacity."""
        pass

    @abstractmethod
    async def count_messages(self, session_id: str) -> int:
        """Return the number of turns currently retained for the session."""
        pass

    @abstractmethod
    async def evict_idle(self, idle_for: timedelta) -> int:
        """Remove sessions with no activity for ``idle_for``.

        Returns:
            Number of sessions removed
        """
        pass
